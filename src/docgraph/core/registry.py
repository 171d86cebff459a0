"""Thread-safe mapping of type names to content store node collections."""

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from docgraph.models.node import Node
from docgraph.protocols import ContentStoreProtocol, TypeHandleProtocol


@dataclass
class _TypeEntry:
    handle: TypeHandleProtocol
    ids: set[str] = field(default_factory=set)
    lock: threading.Lock = field(default_factory=threading.Lock)


class TypeRegistry:
    """Track the types created in the content store and the node ids in each.

    Types are created lazily and never dropped. Every mutation holds the lock
    of its own type only, so unrelated types can change concurrently.
    """

    def __init__(self, store: ContentStoreProtocol) -> None:
        self.store = store
        self._types: dict[str, _TypeEntry] = {}
        self._lock = threading.Lock()

    def __contains__(self, type_name: str) -> bool:
        return type_name in self._types

    @property
    def type_names(self) -> list[str]:
        with self._lock:
            return sorted(self._types)

    def ensure_type(self, type_name: str) -> TypeHandleProtocol:
        return self._entry(type_name).handle

    def upsert(self, type_name: str, node: Node) -> bool:
        """Add the node, or update it in place if its id exists. True if added."""
        entry = self._entry(type_name)
        with entry.lock:
            if node.id in entry.ids or entry.handle.get_node(node.id) is not None:
                entry.handle.update_node(node)
                entry.ids.add(node.id)
                return False
            entry.handle.add_node(node)
            entry.ids.add(node.id)
            return True

    def remove(self, type_name: str, node_id: str) -> bool:
        entry = self._entry(type_name)
        with entry.lock:
            if node_id not in entry.ids:
                return False
            entry.handle.remove_node(node_id)
            entry.ids.discard(node_id)
            return True

    def retain(self, type_name: str, keep: Iterable[str]) -> list[str]:
        """Remove every node whose id is not in ``keep``. Returns removed ids."""
        keep = set(keep)
        entry = self._entry(type_name)
        with entry.lock:
            stale = sorted(entry.ids - keep)
            for node_id in stale:
                entry.handle.remove_node(node_id)
            entry.ids.difference_update(stale)
        if stale:
            logger.debug("Removed {} stale node(s) from {}: {!r}", len(stale), type_name, stale)
        return stale

    def get(self, type_name: str, node_id: str) -> Node | None:
        entry = self._types.get(type_name)
        if entry is None:
            return None
        with entry.lock:
            return entry.handle.get_node(node_id)

    def ids(self, type_name: str) -> set[str]:
        entry = self._types.get(type_name)
        if entry is None:
            return set()
        with entry.lock:
            return set(entry.ids)

    def node_count(self) -> int:
        with self._lock:
            entries = list(self._types.values())
        return sum(len(entry.ids) for entry in entries)

    def create_reference(self, type_name: str, node_id: str) -> Any:
        return self.store.create_reference(type_name, node_id)

    def _entry(self, type_name: str) -> _TypeEntry:
        with self._lock:
            entry = self._types.get(type_name)
            if entry is None:
                logger.debug("Creating type {}", type_name)
                entry = _TypeEntry(handle=self.store.add_type(type_name))
                self._types[type_name] = entry
            return entry
