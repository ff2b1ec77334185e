"""Locating package-manager executables.

npm-style package managers ship as wrapper scripts next to the runtime
binary (``npm.cmd`` beside ``node.exe`` on Windows).  Those wrappers are not
always reachable through ``PATH`` when the build runs from an IDE or a
service, so resolution walks a chain of strategies and accepts the first
candidate whose ``--version`` probe succeeds.
"""

from __future__ import annotations

import shutil
import sys
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from buildtools.errors import ToolMissingError
from buildtools.utils import console

Prober = Callable[[str], Awaitable["str | None"]]
Which = Callable[[str], "str | None"]


def wrapper_suffix(platform: str | None = None) -> str:
    """Extension package managers use for their launcher scripts."""
    return ".cmd" if (platform or sys.platform) == "win32" else ""


@dataclass(frozen=True)
class ResolvedCommand:
    path: str
    version: str
    strategy: str


class ResolutionStrategy(ABC):
    """One way of turning a tool name into an executable candidate."""

    name: str = "strategy"

    @abstractmethod
    def candidate(self, tool: str) -> str | None:
        """Return a path or command to probe, or ``None`` to pass."""


class RuntimeSiblingStrategy(ResolutionStrategy):
    """Looks for ``<tool><suffix>`` in the directory holding the runtime binary."""

    name = "runtime-sibling"

    def __init__(
        self,
        runtime: str = "node",
        suffix: str | None = None,
        which: Which = shutil.which,
    ) -> None:
        self.runtime = runtime
        self.suffix = suffix
        self._which = which

    def candidate(self, tool: str) -> str | None:
        runtime_path = self._which(self.runtime)
        if not runtime_path:
            return None
        suffix = wrapper_suffix() if self.suffix is None else self.suffix
        sibling = Path(runtime_path).parent / f"{tool}{suffix}"
        return str(sibling) if sibling.is_file() else None


class BareNameStrategy(ResolutionStrategy):
    """Leaves lookup to the operating system's ``PATH`` search.

    Process creation on Windows does not apply ``PATHEXT``, so the launcher
    suffix is appended there (``npm.cmd``).
    """

    name = "path"

    def __init__(self, suffix: str | None = None) -> None:
        self.suffix = suffix

    def candidate(self, tool: str) -> str | None:
        suffix = wrapper_suffix() if self.suffix is None else self.suffix
        return f"{tool}{suffix}"


def default_strategies(runtime: str = "node") -> list[ResolutionStrategy]:
    return [RuntimeSiblingStrategy(runtime), BareNameStrategy()]


class CommandResolver:
    """Tries each strategy in turn until a candidate answers ``--version``."""

    def __init__(
        self,
        probe: Prober,
        strategies: list[ResolutionStrategy] | None = None,
        remediation: str = "",
    ) -> None:
        self._probe = probe
        self.strategies = strategies if strategies is not None else default_strategies()
        self.remediation = remediation

    async def resolve(self, tool: str) -> ResolvedCommand:
        """Return the first working executable for *tool*.

        Raises:
            ToolMissingError: No strategy produced a candidate that passed
                its version probe.
        """
        for strategy in self.strategies:
            candidate = strategy.candidate(tool)
            if candidate is None:
                continue

            version = await self._probe(candidate)
            if version is not None:
                console.print(
                    f"  [green]+[/green] {escape(tool)} {escape(version)} "
                    f"[dim]({strategy.name}: {escape(candidate)})[/dim]"
                )
                return ResolvedCommand(path=candidate, version=version, strategy=strategy.name)

            console.print(f"  [dim]{escape(candidate)} did not answer --version[/dim]")

        raise ToolMissingError(tool, self.remediation)
