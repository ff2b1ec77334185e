"""BuildTools Pipeline Orchestrator.

Implements the three-stage asset build:

Stage 1: INITIALIZE -- Verify node, create project folders, deploy templates,
                       install npm packages when missing.
Stage 2: GENERATE   -- Run the registered asset generators in order.
Stage 3: BUILD      -- Bundle css, then js, with the external bundler.

Generators and templates are discovered once, before stage 1, so a broken
generator class stops the run before anything touches the disk.  The first
error from any stage aborts the run and is re-raised to the caller; files
already written are left in place.

Usage::

    python -m buildtools ./MyProject
    python -m buildtools --config build/buildtools.json
"""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel

from buildtools.assets import AssetGenerationStage
from buildtools.config import Config
from buildtools.context import ProjectContext
from buildtools.discovery import (
    GeneratorDescriptor,
    Registry,
    TemplateDescriptor,
    default_registry,
)
from buildtools.errors import BuildToolsError
from buildtools.templates import DefaultTemplates, TemplateDeployer
from buildtools.tools import NodeToolsManager
from buildtools.utils import (
    STAGE_NAMES,
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_step,
    print_success,
    print_summary_table,
    relative_to_root,
)


class BuildPipeline:
    """Runs Initialize -> Generate -> Build for one project.

    Attributes:
        context: The project being built.
        registry: Source of generator and template descriptors.
        tools: Coordinator for the external Node.js toolchain.
        state: Results accumulated by the stages of the current run.
    """

    def __init__(
        self,
        context: ProjectContext,
        registry: Registry | None = None,
        tools: NodeToolsManager | None = None,
        config: Config | None = None,
    ) -> None:
        self.config = config or Config(paths=context.layout)
        self.context = context
        self.registry = registry if registry is not None else default_registry
        self.tools = tools or NodeToolsManager(context, self.config.node)
        self.templates = TemplateDeployer(context)
        self.assets = AssetGenerationStage(context)
        self.state: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self) -> tuple[list[GeneratorDescriptor], list[TemplateDescriptor]]:
        """Materialise the descriptor lists for this run."""
        generators = self.registry.discover_generators()
        templates = self.registry.discover_templates()
        if self.config.default_templates:
            templates = DefaultTemplates(self.context, self.config).merge_into(templates)
        return generators, templates

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def initialize(self, templates: list[TemplateDescriptor]) -> dict[str, Any]:
        """Verify node, create folders, deploy templates, ensure packages."""
        version = await self.tools.verify_runtime()

        created = self.context.ensure_directories()
        print_step(
            "Project folders ready: "
            + ", ".join(escape(relative_to_root(d, self.context.root)) for d in created)
        )

        report = await self.templates.ensure_templates(templates)
        installed = await self.tools.ensure_dependencies()

        return {
            "node_version": version,
            "templates_written": [str(p) for p in report.written],
            "templates_skipped": [str(p) for p in report.skipped],
            "dependencies_installed": installed,
        }

    async def generate(self, generators: list[GeneratorDescriptor]) -> dict[str, Any]:
        """Run every generator and write its output to the bundle directory."""
        if not generators:
            print_step("No asset generators registered")
        written = await self.assets.generate_assets(generators)
        return {"generated": [str(p) for p in written]}

    async def build_assets(self) -> dict[str, Any]:
        """Bundle css then js."""
        results = await self.tools.build()
        return {"bundles": [r.command[-1] for r in results]}

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def execute(self) -> dict[str, Any]:
        """Run discovery and all three stages, stopping at the first error.

        Returns:
            The accumulated state: one entry per stage plus ``duration``.

        Raises:
            BuildToolsError: Whatever the failing stage raised, unchanged.
        """
        run_start = time.monotonic()
        console.print(
            Panel(
                f"[bold bright_cyan]BuildTools[/bold bright_cyan]\n"
                f"Project : {escape(str(self.context.root))}\n"
                f"Bundle  : {escape(self.context.layout.css_bundle)}",
                title="[bold]Build Start[/bold]",
                border_style="bright_cyan",
            )
        )

        generators, templates = self.discover()
        print_step(
            f"Discovered {len(generators)} generator(s) and {len(templates)} template(s)"
        )

        stages = (
            (1, lambda: self.initialize(templates)),
            (2, lambda: self.generate(generators)),
            (3, self.build_assets),
        )

        for stage_num, run_stage in stages:
            stage_name = STAGE_NAMES[stage_num]
            print_stage_header(stage_num, stage_name)

            stage_start = time.monotonic()
            try:
                self.state[stage_name.lower()] = await run_stage()
            except Exception as exc:
                elapsed = time.monotonic() - stage_start
                print_error(
                    f"Stage {stage_num} ({stage_name}) FAILED after "
                    f"{format_duration(elapsed)}: {exc}"
                )
                raise

            print_success(
                f"Stage {stage_num} ({stage_name}) completed in "
                f"{format_duration(time.monotonic() - stage_start)}"
            )

        self.state["duration"] = format_duration(time.monotonic() - run_start)
        self._print_final_summary()
        return self.state

    def _print_final_summary(self) -> None:
        initialize = self.state.get("initialize", {})
        print_summary_table(
            {
                "Project": str(self.context.root),
                "Templates written": str(len(initialize.get("templates_written", []))),
                "Templates kept": str(len(initialize.get("templates_skipped", []))),
                "Packages installed": "yes" if initialize.get("dependencies_installed") else "no",
                "Assets generated": str(len(self.state.get("generate", {}).get("generated", []))),
                "Bundles": ", ".join(self.state.get("build", {}).get("bundles", [])),
                "Duration": self.state.get("duration", ""),
            },
            title="Build Results",
        )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def build(
    project_path: str | Path | None = None,
    *,
    config: Config | None = None,
    registry: Registry | None = None,
    tools: NodeToolsManager | None = None,
) -> dict[str, Any]:
    """Build the project at *project_path* (defaults to the working directory).

    Args:
        project_path: Project root.
        config: Explicit configuration; otherwise ``buildtools.json`` in the
            project root and ``BUILDTOOLS_*`` variables are used.
        registry: Generators and templates; defaults to the registry the
            ``@asset_generator`` / ``@build_template`` decorators fill.
        tools: Pre-built toolchain coordinator (mainly for tests).

    Returns:
        The pipeline state on success.

    Raises:
        BuildToolsError: The first fatal error of the run.
    """
    root = Path(project_path) if project_path else Path.cwd()
    config = config or Config.for_project(root)
    context = ProjectContext(root, config.paths)

    registry = registry if registry is not None else default_registry
    if config.entry_points:
        registry.load_entry_points()

    pipeline = BuildPipeline(context, registry=registry, tools=tools, config=config)
    return await pipeline.execute()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``buildtools`` / ``python -m buildtools``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="BuildTools -- generate assets and bundle them with Vite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  buildtools\n"
            "  buildtools ./MyProject\n"
            "  buildtools ./MyProject --config ci/buildtools.json --no-default-templates\n"
        ),
    )
    parser.add_argument(
        "project",
        nargs="?",
        default=None,
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Configuration JSON (default: <project>/buildtools.json if present)",
    )
    parser.add_argument(
        "--no-default-templates",
        action="store_true",
        help="Do not deploy the built-in package.json and Vite configs",
    )
    parser.add_argument(
        "--no-entry-points",
        action="store_true",
        help="Do not load plugins from installed packages",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print the effective configuration and exit",
    )

    args = parser.parse_args(argv)

    root = Path(args.project) if args.project else Path.cwd()
    if args.config and not Path(args.config).is_file():
        console.print(f"[bold red]Error:[/bold red] Config file not found: {escape(args.config)}")
        sys.exit(1)

    try:
        if args.config:
            config = Config.from_env(Config.load(Path(args.config)))
        else:
            config = Config.for_project(root)
    except (ValidationError, OSError) as exc:
        print_error(f"Invalid configuration: {exc}")
        sys.exit(1)

    updates: dict[str, Any] = {}
    if args.no_default_templates:
        updates["default_templates"] = False
    if args.no_entry_points:
        updates["entry_points"] = False
    if updates:
        config = config.model_copy(update=updates)

    if args.print_config:
        console.print_json(config.model_dump_json())
        return

    try:
        asyncio.run(build(root, config=config))
    except BuildToolsError:
        console.print("[bold red]Build failed.[/bold red]")
        sys.exit(1)

    console.print("[bold green]Build completed successfully![/bold green]")


if __name__ == "__main__":
    main()
