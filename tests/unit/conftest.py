"""Shared test fixtures."""

from collections.abc import Iterator

import pytest
from loguru import logger

from docgraph.core.builder import NodeBuilder
from docgraph.core.normalizer import FieldNormalizer
from docgraph.core.registry import TypeRegistry
from tests.unit.fakes import FakeSource, FakeStore, slugify


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Collect loguru output as "LEVEL message" strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(f"{m.record['level'].name} {m.record['message']}"),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def registry(store: FakeStore) -> TypeRegistry:
    return TypeRegistry(store)


@pytest.fixture
def builder(registry: TypeRegistry) -> NodeBuilder:
    normalizer = FieldNormalizer(registry.create_reference, image_directory=None)
    return NodeBuilder(normalizer, slugify)
