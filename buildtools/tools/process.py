"""Child process supervision.

Spawns external tools with :func:`asyncio.create_subprocess_exec`, forwards
their stdout/stderr line by line to an output sink as the data arrives, and
keeps the complete text of both streams for error reporting.  There is no
timeout: :meth:`ProcessRunner.run` returns only when the process exits.
"""

from __future__ import annotations

import asyncio
import codecs
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from buildtools.errors import ToolMissingError
from buildtools.utils import echo_process_line

OutputSink = Callable[[str, str], None]
"""Receives ``(stream_name, line)`` where stream_name is ``"stdout"`` or ``"stderr"``."""

_CHUNK_SIZE = 64 * 1024


@dataclass
class CommandResult:
    """Outcome of one finished process."""

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def display(self) -> str:
        return " ".join(self.command)


class ProcessRunner:
    """Runs commands to completion while streaming their output."""

    def __init__(self, sink: OutputSink | None = None) -> None:
        self.sink = sink or echo_process_line

    async def run(
        self,
        command: Sequence[str],
        cwd: str | Path | None = None,
        sink: OutputSink | None = None,
    ) -> CommandResult:
        """Run *command* and wait for it to exit.

        Both pipes are drained concurrently so a chatty stderr cannot block
        the child while stdout is being read.

        Raises:
            ToolMissingError: The executable could not be started.
        """
        sink = sink or self.sink
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
            )
        except OSError as exc:
            raise ToolMissingError(
                command[0], f"Could not start '{command[0]}': {exc}"
            ) from exc

        stdout_chunks: list[str] = []
        stderr_chunks: list[str] = []
        await asyncio.gather(
            _pump(process.stdout, "stdout", sink, stdout_chunks),
            _pump(process.stderr, "stderr", sink, stderr_chunks),
        )
        exit_code = await process.wait()

        return CommandResult(
            command=list(command),
            exit_code=exit_code,
            stdout="".join(stdout_chunks),
            stderr="".join(stderr_chunks),
        )

    async def probe(self, executable: str) -> str | None:
        """Run ``<executable> --version``.

        Returns:
            The trimmed version text, or ``None`` if the executable could not
            be started or exited with a nonzero code.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                "--version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError:
            return None

        stdout_bytes, _ = await process.communicate()
        if process.returncode != 0:
            return None
        return (stdout_bytes or b"").decode("utf-8", errors="replace").strip()


async def _pump(
    stream: asyncio.StreamReader | None,
    name: str,
    sink: OutputSink,
    chunks: list[str],
) -> None:
    """Copy *stream* into *chunks*, emitting each complete line to *sink*."""
    if stream is None:
        return

    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        data = await stream.read(_CHUNK_SIZE)
        text = decoder.decode(data, final=not data)
        if text:
            chunks.append(text)
            pending += text
            *lines, pending = pending.split("\n")
            for line in lines:
                _emit(sink, name, line)
        if not data:
            break

    if pending:
        _emit(sink, name, pending)


def _emit(sink: OutputSink, name: str, line: str) -> None:
    line = line.rstrip("\r")
    if line:
        sink(name, line)
