"""Coordinator for the Node.js toolchain (node, npm, npx + bundler).

The coordinator walks a fixed sequence of states::

    UNINITIALIZED -> VERIFIED -> DEPENDENCIES_READY -> BUILT

Each step may run only from the state before it.  Any failure moves the
coordinator to ``FAILED`` and every later call raises ``ToolStateError``.
One external process runs at a time and each is awaited to completion.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from rich.markup import escape

from buildtools.config import NodeConfig
from buildtools.context import ProjectContext
from buildtools.errors import CommandFailedError, ToolMissingError, ToolStateError
from buildtools.utils import console, print_step

from .process import CommandResult, ProcessRunner
from .resolver import CommandResolver, ResolvedCommand, default_strategies


class ToolState(str, Enum):
    UNINITIALIZED = "uninitialized"
    VERIFIED = "verified"
    DEPENDENCIES_READY = "dependencies_ready"
    BUILT = "built"
    FAILED = "failed"


class NodeToolsManager:
    """Verifies node, installs packages and runs the two bundler passes."""

    def __init__(
        self,
        context: ProjectContext,
        config: NodeConfig | None = None,
        runner: ProcessRunner | None = None,
        resolver: CommandResolver | None = None,
    ) -> None:
        self.context = context
        self.config = config or NodeConfig()
        self.runner = runner or ProcessRunner()
        self.resolver = resolver or CommandResolver(
            self.runner.probe,
            default_strategies(self.config.runtime),
            remediation=self.remediation,
        )
        self.state = ToolState.UNINITIALIZED
        self._resolved: dict[str, ResolvedCommand] = {}

    @property
    def remediation(self) -> str:
        return (
            "Node.js is required to build this project. "
            f"Please install Node.js from {self.config.install_url}"
        )

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    @contextmanager
    def _advance(self, expected: ToolState, target: ToolState) -> Iterator[None]:
        if self.state is ToolState.FAILED:
            raise ToolStateError("A previous toolchain step failed; start a new run.")
        if self.state is not expected:
            raise ToolStateError(
                f"Cannot move to {target.value} from {self.state.value} "
                f"(expected {expected.value})"
            )
        try:
            yield
        except BaseException:
            self.state = ToolState.FAILED
            raise
        self.state = target

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def verify_runtime(self) -> str:
        """Check ``<runtime> --version`` exits with 0.

        Returns:
            The reported runtime version.

        Raises:
            ToolMissingError: The runtime could not be started or failed.
        """
        with self._advance(ToolState.UNINITIALIZED, ToolState.VERIFIED):
            version = await self.runner.probe(self.config.runtime)
            if version is None:
                raise ToolMissingError(self.config.runtime, self.remediation)
            print_step(f"Node.js {escape(version)} available")
            return version

    async def ensure_dependencies(self) -> bool:
        """Run the package manager's install unless the dependency dir exists.

        An existing directory is trusted as-is, even when empty or stale.
        A plain file with the same name does not count.

        Returns:
            ``True`` if an install was run.
        """
        with self._advance(ToolState.VERIFIED, ToolState.DEPENDENCIES_READY):
            dependency_dir = self.context.full_path(self.config.dependency_dir)
            if dependency_dir.is_dir():
                print_step(f"{escape(self.config.dependency_dir)} present, skipping install")
                return False

            print_step(f"Installing {escape(self.config.package_manager)} packages...")
            manager = await self.resolve(self.config.package_manager)
            await self._run([manager.path, "install"])
            return True

    async def build(self, profiles: list[tuple[str, str]] | None = None) -> list[CommandResult]:
        """Run one bundler pass per profile, in order (css, then js by default).

        Raises:
            CommandFailedError: A pass exited nonzero; later passes do not run.
        """
        with self._advance(ToolState.DEPENDENCIES_READY, ToolState.BUILT):
            results: list[CommandResult] = []
            for profile, config_file in profiles or self.config.profiles():
                print_step(f"Bundling {profile} with [bold]{escape(config_file)}[/bold]")
                runner = await self.resolve(self.config.runner)
                results.append(
                    await self._run(
                        [runner.path, self.config.bundler, "build", "--config", config_file]
                    )
                )
            return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def resolve(self, tool: str) -> ResolvedCommand:
        """Resolve *tool* once per coordinator and reuse the answer."""
        if tool not in self._resolved:
            self._resolved[tool] = await self.resolver.resolve(tool)
        return self._resolved[tool]

    async def _run(self, command: list[str]) -> CommandResult:
        console.print(f"  [dim]$ {escape(' '.join(command))}[/dim]")
        result = await self.runner.run(command, cwd=self.context.root)
        if not result.succeeded:
            raise CommandFailedError(result)
        return result
