"""Descriptor types produced by discovery and consumed by the stages."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import PurePosixPath, PureWindowsPath

from buildtools.errors import ContentProductionError

Producer = Callable[[], "str | Awaitable[str]"]


class AssetGenerator(ABC):
    """Contract for classes that produce one file under the asset bundle.

    Subclasses must be constructible without arguments; they are instantiated
    once per run when the registry is discovered.
    """

    name: str
    output_file_name: str

    @abstractmethod
    def get_content(self) -> str | Awaitable[str]:
        """Return the full text to write to ``<bundle>/<output_file_name>``."""


@dataclass(frozen=True)
class GeneratorDescriptor:
    """A resolved generator: where its output goes and how to produce it."""

    order: int
    name: str
    output_file_name: str
    produce: Producer

    def __post_init__(self) -> None:
        if not self.output_file_name:
            raise ValueError(f"Generator '{self.name}' has an empty output file name")
        _check_contained(self.output_file_name, "Generator output")


@dataclass(frozen=True)
class TemplateDescriptor:
    """A project file deployed from a zero-argument producer.

    ``relative_path`` is resolved against the project root and may not point
    outside of it.
    """

    relative_path: str
    overwrite: bool
    produce: Producer

    def __post_init__(self) -> None:
        if not self.relative_path:
            raise ValueError("Template path must not be empty")
        _check_contained(self.relative_path, "Template path")

    @property
    def name(self) -> str:
        return self.relative_path


def _check_contained(value: str, label: str) -> None:
    """Reject absolute paths and paths climbing out with ``..`` on any platform."""
    for path in (PurePosixPath(value), PureWindowsPath(value)):
        if path.is_absolute() or path.anchor:
            raise ValueError(f"{label} must be a relative path: {value!r}")
        if ".." in path.parts:
            raise ValueError(f"{label} escapes its directory: {value!r}")


async def run_producer(kind: str, name: str, produce: Producer) -> str:
    """Invoke *produce* once and return its text, awaiting it when needed.

    Raises:
        ContentProductionError: The producer raised or returned a non-string.
    """
    try:
        content = produce()
        if inspect.isawaitable(content):
            content = await content
    except Exception as exc:
        raise ContentProductionError(kind, name, exc) from exc

    if not isinstance(content, str):
        raise ContentProductionError(
            kind, name, TypeError(f"expected str, got {type(content).__name__}")
        )
    return content
