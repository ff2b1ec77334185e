"""Explicit registry of asset generators and build templates.

Generators and templates are registered by the composition root (directly or
through the :func:`asset_generator` / :func:`build_template` decorators) and
turned into ordered descriptor lists once per run.  Discovery never touches
the file system.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from types import ModuleType
from typing import Callable, Iterable, TypeVar

from buildtools.errors import InstantiationError

from .models import GeneratorDescriptor, Producer, TemplateDescriptor

ENTRY_POINT_GROUP = "buildtools.plugins"

_T = TypeVar("_T")


@dataclass(frozen=True)
class _GeneratorEntry:
    order: int
    source: type | GeneratorDescriptor


class Registry:
    """Holds generator and template registrations in registration order."""

    def __init__(self) -> None:
        self._generators: list[_GeneratorEntry] = []
        self._templates: list[TemplateDescriptor] = []
        self._entry_points: set[str] = set()

    # -- Registration ------------------------------------------------------

    def register_generator(self, generator_cls: type, order: int = 0) -> type:
        """Register a generator class, instantiated lazily at discovery."""
        if not isinstance(generator_cls, type):
            raise TypeError(f"Expected a generator class, got {generator_cls!r}")
        self._generators.append(_GeneratorEntry(order=order, source=generator_cls))
        return generator_cls

    def add_generator(
        self,
        name: str,
        output_file_name: str,
        produce: Producer,
        order: int = 0,
    ) -> GeneratorDescriptor:
        """Register a plain function as a generator."""
        descriptor = GeneratorDescriptor(
            order=order, name=name, output_file_name=output_file_name, produce=produce
        )
        self._generators.append(_GeneratorEntry(order=order, source=descriptor))
        return descriptor

    def register_template(
        self,
        produce: Producer,
        relative_path: str,
        overwrite: bool = False,
    ) -> TemplateDescriptor:
        """Register a zero-argument content producer for a project file."""
        descriptor = TemplateDescriptor(
            relative_path=relative_path, overwrite=overwrite, produce=produce
        )
        self._templates.append(descriptor)
        return descriptor

    def clear(self) -> None:
        self._generators.clear()
        self._templates.clear()
        self._entry_points.clear()

    # -- Discovery ---------------------------------------------------------

    def discover_generators(self) -> list[GeneratorDescriptor]:
        """Return generator descriptors sorted by order, stable on ties.

        Raises:
            InstantiationError: A registered class cannot be constructed
                without arguments or does not honour the generator contract.
        """
        descriptors = [
            entry.source
            if isinstance(entry.source, GeneratorDescriptor)
            else _instantiate(entry.source, entry.order)
            for entry in self._generators
        ]
        return sorted(descriptors, key=lambda d: d.order)

    def discover_templates(self) -> list[TemplateDescriptor]:
        """Return template descriptors in registration order."""
        return list(self._templates)

    # -- Plugin boundary ---------------------------------------------------

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> list[str]:
        """Load installed plugins advertised under *group*.

        An entry point may reference a ``register(registry)`` callable, or a
        module exposing one.  A module without ``register`` is accepted only
        for the default registry, where its decorators registered on import.
        Each entry point is loaded at most once per registry.

        Returns:
            Names of the loaded entry points.
        """
        loaded: list[str] = []
        for entry in _iter_entry_points(group):
            if entry.name in self._entry_points:
                continue
            try:
                target = entry.load()
            except Exception as exc:
                raise InstantiationError(
                    f"entry point '{entry.name}'", str(exc)
                ) from exc

            hook = getattr(target, "register", None) if isinstance(target, ModuleType) else target
            if callable(hook):
                try:
                    hook(self)
                except InstantiationError:
                    raise
                except Exception as exc:
                    raise InstantiationError(
                        f"entry point '{entry.name}'", f"register() failed: {exc}"
                    ) from exc
            elif not (isinstance(target, ModuleType) and self is default_registry):
                raise InstantiationError(
                    f"entry point '{entry.name}'",
                    "expected a register(registry) callable or a module defining one",
                )
            self._entry_points.add(entry.name)
            loaded.append(entry.name)
        return loaded


def _qualname(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _instantiate(generator_cls: type, order: int) -> GeneratorDescriptor:
    target = _qualname(generator_cls)
    try:
        instance = generator_cls()
    except Exception as exc:
        raise InstantiationError(
            target, f"no usable no-argument constructor ({exc})"
        ) from exc

    name = getattr(instance, "name", None)
    file_name = getattr(instance, "output_file_name", None)
    get_content = getattr(instance, "get_content", None)
    if not isinstance(name, str) or not isinstance(file_name, str) or not callable(get_content):
        raise InstantiationError(
            target, "generators must define name, output_file_name and get_content()"
        )

    try:
        return GeneratorDescriptor(
            order=order, name=name, output_file_name=file_name, produce=get_content
        )
    except ValueError as exc:
        raise InstantiationError(target, str(exc)) from exc


def _iter_entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=group)


default_registry = Registry()


def asset_generator(
    order: int = 0, *, registry: Registry | None = None
) -> Callable[[type], type]:
    """Class decorator registering an :class:`AssetGenerator` implementation.

    Example::

        @asset_generator(order=10)
        class Palette(AssetGenerator):
            name = "Palette"
            output_file_name = "_palette.css"

            def get_content(self) -> str:
                return ":root { --primary: #1d4ed8; }"
    """

    def decorator(cls: type) -> type:
        target = registry if registry is not None else default_registry
        return target.register_generator(cls, order=order)

    return decorator


def build_template(
    relative_path: str, overwrite: bool = False, *, registry: Registry | None = None
) -> Callable[[_T], _T]:
    """Function decorator registering a template producer."""

    def decorator(fn: _T) -> _T:
        target = registry if registry is not None else default_registry
        target.register_template(fn, relative_path, overwrite=overwrite)  # type: ignore[arg-type]
        return fn

    return decorator
