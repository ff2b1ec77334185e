"""Discovery of asset generators and build templates.

Quick usage::

    from buildtools.discovery import AssetGenerator, asset_generator, build_template

    @asset_generator(order=1)
    class Tokens(AssetGenerator):
        name = "Design tokens"
        output_file_name = "_tokens.css"

        def get_content(self) -> str:
            return ":root { --gap: 4px; }"

    @build_template("tsconfig.json")
    def tsconfig() -> str:
        return "{}"
"""

from .models import AssetGenerator, GeneratorDescriptor, TemplateDescriptor
from .registry import (
    ENTRY_POINT_GROUP,
    Registry,
    asset_generator,
    build_template,
    default_registry,
)

__all__ = [
    "AssetGenerator",
    "GeneratorDescriptor",
    "TemplateDescriptor",
    "Registry",
    "ENTRY_POINT_GROUP",
    "asset_generator",
    "build_template",
    "default_registry",
]
