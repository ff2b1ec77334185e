"""Shared pytest fixtures for the BuildTools test suite.

Provides reusable fixtures for:
- Temporary project directories and contexts
- Isolated registries
- A fake process runner standing in for node / npm / npx
- Mock asyncio subprocesses backed by real StreamReaders
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from buildtools.config import NodeConfig
from buildtools.context import ProjectContext
from buildtools.discovery import Registry, default_registry
from buildtools.tools import BareNameStrategy, CommandResolver, CommandResult, NodeToolsManager


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty project directory (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def context(tmp_project_dir: Path) -> ProjectContext:
    return ProjectContext(tmp_project_dir)


@pytest.fixture
def registry() -> Registry:
    """A registry that is not shared with the decorator default."""
    return Registry()


@pytest.fixture
def clean_default_registry() -> Registry:
    """The decorator default registry, emptied before and after the test."""
    default_registry.clear()
    yield default_registry
    default_registry.clear()


# ---------------------------------------------------------------------------
# Fake toolchain
# ---------------------------------------------------------------------------

DEFAULT_VERSIONS: dict[str, str] = {
    "node": "v20.11.0",
    "npm": "10.2.4",
    "npx": "10.2.4",
}


class FakeRunner:
    """Records every command instead of spawning it.

    ``versions`` maps an executable name to what ``--version`` reports; a
    missing entry behaves like a tool that is not installed.  ``failures``
    maps a substring of the command line to the result to return for it.
    """

    def __init__(
        self,
        versions: dict[str, str] | None = None,
        failures: dict[str, CommandResult] | None = None,
    ) -> None:
        self.versions = dict(DEFAULT_VERSIONS if versions is None else versions)
        self.failures = failures or {}
        self.calls: list[list[str]] = []
        self.probes: list[str] = []
        self.cwds: list[Any] = []

    async def probe(self, executable: str) -> str | None:
        self.probes.append(executable)
        return self.versions.get(Path(executable).name)

    async def run(self, command, cwd=None, sink=None) -> CommandResult:
        command = list(command)
        self.calls.append(command)
        self.cwds.append(cwd)
        line = " ".join(command)
        for needle, result in self.failures.items():
            if needle in line:
                return CommandResult(
                    command=command,
                    exit_code=result.exit_code,
                    stdout=result.stdout,
                    stderr=result.stderr,
                )
        return CommandResult(command=command, exit_code=0, stdout="ok\n", stderr="")

    def bundler_configs(self) -> list[str]:
        """``--config`` values of the bundler invocations, in call order."""
        return [c[-1] for c in self.calls if "build" in c and "--config" in c]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


def make_tools(context: ProjectContext, runner: FakeRunner, config: NodeConfig | None = None) -> NodeToolsManager:
    """Coordinator wired to *runner*, resolving tools by bare name only."""
    return NodeToolsManager(
        context,
        config or NodeConfig(),
        runner=runner,
        resolver=CommandResolver(runner.probe, [BareNameStrategy(suffix="")], remediation="install node"),
    )


@pytest.fixture
def tools(context: ProjectContext, fake_runner: FakeRunner) -> NodeToolsManager:
    return make_tools(context, fake_runner)


# ---------------------------------------------------------------------------
# Mock subprocess
# ---------------------------------------------------------------------------

def make_stream(*chunks: bytes) -> asyncio.StreamReader:
    """StreamReader pre-filled with *chunks* and closed.  Call inside a running loop."""
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    reader.feed_eof()
    return reader


def make_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    """A stand-in for ``asyncio.subprocess.Process``."""
    process = MagicMock()
    process.stdout = make_stream(stdout)
    process.stderr = make_stream(stderr)
    process.returncode = returncode
    process.wait = AsyncMock(return_value=returncode)
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    return process


@pytest.fixture
def process_factory():
    """Factory fixture: ``process_factory(stdout=b"...", returncode=1)``."""
    return make_process


@pytest.fixture
def tools_factory():
    """Factory fixture: ``tools_factory(context, runner, config=None)``."""
    return make_tools


@pytest.fixture
def runner_factory():
    """Factory fixture building :class:`FakeRunner` instances."""
    return FakeRunner
