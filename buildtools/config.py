"""BuildTools configuration.

Centralised, typed configuration for the build pipeline. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.

A project may drop a ``buildtools.json`` next to its sources to relocate the
asset bundle, the types directory or the web-root output folders.  Anything
not mentioned keeps the defaults below.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CONFIG_FILE_NAME = "buildtools.json"


class PathsConfig(BaseModel):
    """Project-relative layout used by the pipeline.

    Every value is relative to the project root.  The model is frozen so a
    ``ProjectContext`` built from it cannot drift during a run.
    """

    model_config = ConfigDict(frozen=True)

    css_bundle: str = Field(default="CssBundle", min_length=1)
    types: str = Field(default="Types", min_length=1)
    wwwroot: str = Field(default="wwwroot", min_length=1)
    wwwroot_css: str = Field(default="wwwroot/css", min_length=1)
    wwwroot_js: str = Field(default="wwwroot/js", min_length=1)


class NodeConfig(BaseModel):
    """Names of the external Node.js toolchain pieces."""

    runtime: str = Field(default="node")
    package_manager: str = Field(default="npm")
    runner: str = Field(default="npx")
    bundler: str = Field(default="vite")
    dependency_dir: str = Field(
        default="node_modules",
        description="Directory whose presence means dependencies are installed",
    )
    css_config: str = Field(default="vite.config.css.js")
    js_config: str = Field(default="vite.config.js")
    install_url: str = Field(default="https://nodejs.org/")

    def profiles(self) -> list[tuple[str, str]]:
        """Return the bundler profiles in build order as ``(name, config file)``."""
        return [("css", self.css_config), ("js", self.js_config)]


class Config(BaseModel):
    """Global BuildTools configuration.

    Instances are typically created once by :func:`buildtools.pipeline.build`
    or by the CLI entry point and then passed through the rest of the system.
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)
    default_templates: bool = Field(
        default=True, description="Deploy the built-in bundler starter files"
    )
    entry_points: bool = Field(
        default=True, description="Load plugins published under the buildtools.plugins group"
    )

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration from JSON.

        Args:
            path: The JSON file to read.

        Returns:
            A validated ``Config`` instance.
        """
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, base: "Config | None" = None) -> "Config":
        """Build a ``Config`` from environment variables.

        Values from *base* (or the defaults) are kept unless overridden.

        Recognised variables (all optional):
            BUILDTOOLS_CSS_BUNDLE, BUILDTOOLS_TYPES, BUILDTOOLS_WWWROOT,
            BUILDTOOLS_WWWROOT_CSS, BUILDTOOLS_WWWROOT_JS,
            BUILDTOOLS_NODE, BUILDTOOLS_NPM, BUILDTOOLS_NPX, BUILDTOOLS_BUNDLER,
            BUILDTOOLS_DEFAULT_TEMPLATES.
        """
        base = base or cls()

        paths_kwargs: dict[str, Any] = base.paths.model_dump()
        for field_name, env_name in _PATH_ENV_VARS.items():
            if os.environ.get(env_name):
                paths_kwargs[field_name] = os.environ[env_name]

        node_kwargs: dict[str, Any] = base.node.model_dump()
        for field_name, env_name in _NODE_ENV_VARS.items():
            if os.environ.get(env_name):
                node_kwargs[field_name] = os.environ[env_name]

        default_templates = base.default_templates
        if os.environ.get("BUILDTOOLS_DEFAULT_TEMPLATES"):
            default_templates = _parse_bool(os.environ["BUILDTOOLS_DEFAULT_TEMPLATES"])

        return cls(
            paths=PathsConfig(**paths_kwargs),
            node=NodeConfig(**node_kwargs),
            default_templates=default_templates,
            entry_points=base.entry_points,
        )

    @classmethod
    def for_project(cls, project_root: Path) -> "Config":
        """Load ``<project_root>/buildtools.json`` if present, then apply env overrides."""
        config_path = Path(project_root) / CONFIG_FILE_NAME
        base = cls.load(config_path) if config_path.is_file() else cls()
        return cls.from_env(base)


_PATH_ENV_VARS: dict[str, str] = {
    "css_bundle": "BUILDTOOLS_CSS_BUNDLE",
    "types": "BUILDTOOLS_TYPES",
    "wwwroot": "BUILDTOOLS_WWWROOT",
    "wwwroot_css": "BUILDTOOLS_WWWROOT_CSS",
    "wwwroot_js": "BUILDTOOLS_WWWROOT_JS",
}

_NODE_ENV_VARS: dict[str, str] = {
    "runtime": "BUILDTOOLS_NODE",
    "package_manager": "BUILDTOOLS_NPM",
    "runner": "BUILDTOOLS_NPX",
    "bundler": "BUILDTOOLS_BUNDLER",
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}
