"""Unit tests for the asset generation stage (buildtools.assets)."""

from __future__ import annotations

import pytest

from buildtools.assets import AssetGenerationStage
from buildtools.context import ProjectContext
from buildtools.discovery import GeneratorDescriptor, Registry
from buildtools.errors import ContentProductionError

pytestmark = pytest.mark.unit


def _generator(name: str, file_name: str, content: str, order: int = 0) -> GeneratorDescriptor:
    return GeneratorDescriptor(order=order, name=name, output_file_name=file_name, produce=lambda: content)


@pytest.mark.asyncio
async def test_writes_into_bundle_directory(context: ProjectContext):
    written = await AssetGenerationStage(context).generate_assets(
        [_generator("Palette", "_palette.css", ":root{--a:1}")]
    )

    target = context.bundle_path / "_palette.css"
    assert written == [target]
    assert target.read_text(encoding="utf-8") == ":root{--a:1}"


@pytest.mark.asyncio
async def test_runs_in_given_order(context: ProjectContext, registry: Registry):
    seen: list[str] = []

    def producer(name: str):
        def produce() -> str:
            seen.append(name)
            return name
        return produce

    registry.add_generator("late", "late.css", producer("late"), order=20)
    registry.add_generator("early", "early.css", producer("early"), order=1)

    written = await AssetGenerationStage(context).generate_assets(registry.discover_generators())

    assert seen == ["early", "late"]
    assert [p.name for p in written] == ["early.css", "late.css"]


@pytest.mark.asyncio
async def test_later_generator_overrides_same_file(context: ProjectContext):
    written = await AssetGenerationStage(context).generate_assets(
        [
            _generator("Stock", "theme.css", "stock", order=1),
            _generator("Custom", "theme.css", "custom", order=2),
        ]
    )

    assert written == [context.bundle_path / "theme.css"] * 2
    assert (context.bundle_path / "theme.css").read_text() == "custom"


@pytest.mark.asyncio
async def test_each_producer_called_once(context: ProjectContext):
    calls: list[int] = []

    def produce() -> str:
        calls.append(1)
        return "x"

    await AssetGenerationStage(context).generate_assets(
        [GeneratorDescriptor(0, "Once", "once.css", produce)]
    )
    assert calls == [1]


@pytest.mark.asyncio
async def test_async_generator(context: ProjectContext):
    async def produce() -> str:
        return "/* async */"

    await AssetGenerationStage(context).generate_assets(
        [GeneratorDescriptor(0, "Async", "async.css", produce)]
    )
    assert (context.bundle_path / "async.css").read_text() == "/* async */"


@pytest.mark.asyncio
async def test_failure_keeps_earlier_output(context: ProjectContext):
    def broken() -> str:
        raise ValueError("bad token")

    descriptors = [
        _generator("A", "a.css", "a"),
        GeneratorDescriptor(1, "Broken", "b.css", broken),
        _generator("C", "c.css", "c", order=2),
    ]

    with pytest.raises(ContentProductionError) as exc_info:
        await AssetGenerationStage(context).generate_assets(descriptors)

    assert exc_info.value.kind == "Generator"
    assert exc_info.value.name == "Broken"
    assert (context.bundle_path / "a.css").read_text() == "a"
    assert not (context.bundle_path / "b.css").exists()
    assert not (context.bundle_path / "c.css").exists()


@pytest.mark.asyncio
async def test_no_generators(context: ProjectContext):
    assert await AssetGenerationStage(context).generate_assets([]) == []
    assert not context.bundle_path.exists()
