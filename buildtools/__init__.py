"""BuildTools -- asset generation and Vite bundling for a project tree.

Quick usage::

    import asyncio
    from buildtools import build

    asyncio.run(build("./MyProject"))
"""

from buildtools.config import Config, NodeConfig, PathsConfig
from buildtools.context import ProjectContext
from buildtools.discovery import (
    AssetGenerator,
    GeneratorDescriptor,
    Registry,
    TemplateDescriptor,
    asset_generator,
    build_template,
    default_registry,
)
from buildtools.errors import (
    BuildToolsError,
    CommandFailedError,
    ContentProductionError,
    InstantiationError,
    ToolMissingError,
    ToolStateError,
)
from buildtools.pipeline import BuildPipeline, build

__all__ = [
    "build",
    "BuildPipeline",
    "Config",
    "NodeConfig",
    "PathsConfig",
    "ProjectContext",
    "AssetGenerator",
    "GeneratorDescriptor",
    "TemplateDescriptor",
    "Registry",
    "asset_generator",
    "build_template",
    "default_registry",
    "BuildToolsError",
    "CommandFailedError",
    "ContentProductionError",
    "InstantiationError",
    "ToolMissingError",
    "ToolStateError",
]
