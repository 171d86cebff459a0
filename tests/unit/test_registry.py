"""Tests for TypeRegistry."""

import threading

from docgraph.core.registry import TypeRegistry
from docgraph.models.node import Node
from tests.unit.fakes import FakeStore


def _node(node_id: str, **fields: object) -> Node:
    return Node(id=node_id, path=f"/{node_id}", fields={"id": node_id, **fields})


def test_types_are_created_lazily_once(registry: TypeRegistry, store: FakeStore) -> None:
    registry.ensure_type("FirePosts")
    registry.ensure_type("FirePosts")

    assert list(store.types) == ["FirePosts"]
    assert "FirePosts" in registry


def test_upsert_adds_then_updates(registry: TypeRegistry, store: FakeStore) -> None:
    assert registry.upsert("FirePosts", _node("a", v=1)) is True
    assert registry.upsert("FirePosts", _node("a", v=2)) is False

    handle = store.types["FirePosts"]
    assert handle.calls == [("add", "a"), ("update", "a")]
    assert handle.nodes["a"].fields["v"] == 2
    assert registry.ids("FirePosts") == {"a"}


def test_upsert_never_duplicates_under_concurrency(registry: TypeRegistry, store: FakeStore) -> None:
    """Many threads upserting the same ids leave one node per id."""
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        for i in range(50):
            registry.upsert("FireItems", _node(f"n{i}"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store.types["FireItems"].nodes) == 50
    assert registry.ids("FireItems") == {f"n{i}" for i in range(50)}


def test_retain_removes_missing_ids(registry: TypeRegistry, store: FakeStore) -> None:
    for node_id in ("A", "B", "C"):
        registry.upsert("FireItems", _node(node_id))

    removed = registry.retain("FireItems", {"A", "B"})

    assert removed == ["C"]
    assert set(store.types["FireItems"].nodes) == {"A", "B"}


def test_remove_ignores_unknown_ids(registry: TypeRegistry) -> None:
    registry.upsert("FireItems", _node("A"))

    assert registry.remove("FireItems", "Z") is False
    assert registry.remove("FireItems", "A") is True
    assert registry.get("FireItems", "A") is None


def test_get_and_ids_on_unknown_type(registry: TypeRegistry, store: FakeStore) -> None:
    assert registry.get("FireNope", "x") is None
    assert registry.ids("FireNope") == set()
    assert store.types == {}


def test_node_count_and_type_names(registry: TypeRegistry) -> None:
    registry.upsert("FireB", _node("1"))
    registry.upsert("FireA", _node("1"))
    registry.upsert("FireA", _node("2"))

    assert registry.type_names == ["FireA", "FireB"]
    assert registry.node_count() == 3


def test_create_reference_delegates_to_store(registry: TypeRegistry) -> None:
    assert registry.create_reference("FirePosts", "p1") == {"typeName": "FirePosts", "id": "p1"}
