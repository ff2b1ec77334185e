"""Asset generation stage.

Runs the discovered generators in order and writes each one's output under
the project's bundle directory.  Two generators may target the same file
name; the later one wins, which lets a project override a stock asset by
registering a replacement with a higher order.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from buildtools.context import ProjectContext
from buildtools.discovery import GeneratorDescriptor
from buildtools.discovery.models import run_producer
from buildtools.utils import print_step, relative_to_root, write_text


class AssetGenerationStage:
    """Writes generator output to ``<bundle dir>/<output file name>``."""

    def __init__(self, context: ProjectContext) -> None:
        self.context = context

    def target_for(self, descriptor: GeneratorDescriptor) -> Path:
        return self.context.bundle_path / descriptor.output_file_name

    async def generate_assets(self, descriptors: list[GeneratorDescriptor]) -> list[Path]:
        """Invoke every generator once, in the given order.

        Returns:
            The written paths in execution order (a path appears twice when
            a later generator overrides an earlier one).

        Raises:
            ContentProductionError: A generator failed.  Files written by
                earlier generators are kept.
        """
        written: list[Path] = []
        for descriptor in descriptors:
            print_step(f"Generating [bold]{escape(descriptor.name)}[/bold]")
            content = await run_producer("Generator", descriptor.name, descriptor.produce)
            target = await write_text(self.target_for(descriptor), content)
            written.append(target)
            console_path = escape(relative_to_root(target, self.context.root))
            print_step(f"[dim]{console_path} ({len(content)} chars)[/dim]")
        return written
