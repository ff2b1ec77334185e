"""Template deployment.

:class:`TemplateDeployer` writes project configuration files from template
descriptors.  A file that already exists is left untouched unless its
descriptor asks for ``overwrite``; in that case the producer is not even
called.

:class:`DefaultTemplates` renders the Jinja2 starter files the bundler needs
(``package.json`` and the two Vite profiles) from ``template_files/``.
"""

from __future__ import annotations

import functools
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from rich.markup import escape

from buildtools.config import Config
from buildtools.context import ProjectContext
from buildtools.discovery import TemplateDescriptor
from buildtools.discovery.models import run_producer
from buildtools.utils import print_step, relative_to_root, write_text

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "template_files"

DEFAULT_TEMPLATE_FILES: dict[str, str] = {
    "package": "package.json.j2",
    "css": "vite.config.css.js.j2",
    "js": "vite.config.js.j2",
}


@dataclass
class DeploymentReport:
    """Which template targets were written and which were left alone."""

    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


class TemplateDeployer:
    """Applies template descriptors to the project tree."""

    def __init__(self, context: ProjectContext) -> None:
        self.context = context

    async def ensure_templates(
        self, descriptors: list[TemplateDescriptor]
    ) -> DeploymentReport:
        """Deploy *descriptors* one after another.

        Raises:
            ContentProductionError: A producer failed.  Templates already
                written stay on disk and the remaining ones are not processed.
        """
        report = DeploymentReport()
        for descriptor in descriptors:
            target = self.context.full_path(descriptor.relative_path)
            shown = escape(relative_to_root(target, self.context.root))

            if target.exists() and not descriptor.overwrite:
                report.skipped.append(target)
                print_step(f"Keeping existing [bold]{shown}[/bold]")
                continue

            content = await run_producer("Template", descriptor.relative_path, descriptor.produce)
            await write_text(target, content)
            report.written.append(target)
            print_step(f"Wrote template [bold]{shown}[/bold]")

        return report


# ---------------------------------------------------------------------------
# Built-in starter templates
# ---------------------------------------------------------------------------


class DefaultTemplates:
    """Renders the bundler starter files for a project.

    The rendering context comes from the configuration, so relocated bundle
    or output directories end up in the generated Vite configs.
    """

    def __init__(
        self,
        context: ProjectContext,
        config: Config,
        template_dir: str | Path | None = None,
    ) -> None:
        self.context = context
        self.config = config
        self.template_dir = Path(template_dir or _DEFAULT_TEMPLATE_DIR)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["tojson_str"] = json.dumps

    def build_context(self) -> dict[str, Any]:
        paths = self.config.paths
        node = self.config.node
        return {
            "project_name": _package_name(self.context.root.name),
            "bundle_dir": paths.css_bundle,
            "types_dir": paths.types,
            "css_out_dir": paths.wwwroot_css,
            "js_out_dir": paths.wwwroot_js,
            "bundler": node.bundler,
            "css_config": node.css_config,
            "js_config": node.js_config,
        }

    def render(self, template_name: str) -> str:
        template = self.env.get_template(template_name)
        return template.render(**self.build_context())

    def descriptors(self) -> list[TemplateDescriptor]:
        """Return one non-overwriting descriptor per starter file."""
        node = self.config.node
        outputs = {
            "package.json": DEFAULT_TEMPLATE_FILES["package"],
            node.css_config: DEFAULT_TEMPLATE_FILES["css"],
            node.js_config: DEFAULT_TEMPLATE_FILES["js"],
        }
        return [
            TemplateDescriptor(
                relative_path=relative_path,
                overwrite=False,
                produce=functools.partial(self.render, template_name),
            )
            for relative_path, template_name in outputs.items()
        ]

    def merge_into(
        self, templates: list[TemplateDescriptor]
    ) -> list[TemplateDescriptor]:
        """Append the starter descriptors whose paths *templates* does not claim.

        User templates always win: a project registering its own
        ``package.json`` keeps it and the starter one is dropped.
        """
        claimed = {t.relative_path for t in templates}
        return list(templates) + [
            d for d in self.descriptors() if d.relative_path not in claimed
        ]


def _package_name(value: str) -> str:
    """Turn a directory name into a valid npm package name."""
    slug = re.sub(r"[^a-z0-9._-]+", "-", value.lower().strip())
    return slug.strip("-._") or "buildtools-project"
