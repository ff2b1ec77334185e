"""Immutable description of the project being built."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from buildtools.config import PathsConfig


@dataclass(frozen=True)
class ProjectContext:
    """Project root plus the standard subpaths derived from it.

    Attributes:
        root: Absolute project directory.
        layout: Relative layout (bundle, types and web-root folders).
    """

    root: Path
    layout: PathsConfig = field(default_factory=PathsConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root).resolve())

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def bundle_path(self) -> Path:
        """Directory receiving generator output (``CssBundle`` by default)."""
        return self.root / self.layout.css_bundle

    @property
    def types_path(self) -> Path:
        return self.root / self.layout.types

    @property
    def wwwroot_path(self) -> Path:
        return self.root / self.layout.wwwroot

    @property
    def output_css_path(self) -> Path:
        """Where the bundler writes compiled css."""
        return self.root / self.layout.wwwroot_css

    @property
    def output_js_path(self) -> Path:
        """Where the bundler writes compiled js."""
        return self.root / self.layout.wwwroot_js

    def full_path(self, relative_path: str | Path) -> Path:
        """Resolve *relative_path* against the project root."""
        return self.root / relative_path

    def ensure_directories(self) -> list[Path]:
        """Create the bundle, web-root and types directories if missing.

        Returns:
            The directories, in creation order.
        """
        directories = [self.bundle_path, self.wwwroot_path, self.types_path]
        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)
        return directories
