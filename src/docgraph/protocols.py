"""Protocols for the collaborators docgraph is wired to."""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from docgraph.models.node import FetchResult, Node


@runtime_checkable
class SubscriptionProtocol(Protocol):
    """Handle returned by a source subscription."""

    def unsubscribe(self) -> None:
        """Stop delivering notifications."""
        ...


@runtime_checkable
class DocumentSourceProtocol(Protocol):
    """Protocol for document database clients."""

    def resolve(self, reference: Any) -> Any:
        """Turn a caller-supplied reference into a query handle."""
        ...

    def segments(self, handle: Any) -> tuple[str, ...]:
        """Return the path segments the query handle points at."""
        ...

    def fetch(self, handle: Any) -> FetchResult:
        """Execute the query once."""
        ...

    def subscribe(
        self, handle: Any, callback: Callable[[FetchResult], None]
    ) -> SubscriptionProtocol:
        """Deliver the current result, then one result per change, to callback."""
        ...


@runtime_checkable
class TypeHandleProtocol(Protocol):
    """Protocol for a node collection in the content store."""

    def add_node(self, node: Node) -> None:
        """Insert a new node."""
        ...

    def update_node(self, node: Node) -> None:
        """Replace the node with the same id."""
        ...

    def remove_node(self, node_id: str) -> None:
        """Delete a node by id."""
        ...

    def get_node(self, node_id: str) -> Node | None:
        """Look up a node by id."""
        ...


@runtime_checkable
class ContentStoreProtocol(Protocol):
    """Protocol for the downstream content store."""

    def add_type(self, type_name: str) -> TypeHandleProtocol:
        """Create a node collection for the type."""
        ...

    def create_reference(self, type_name: str, node_id: str) -> Any:
        """Return the store's reference value pointing at a node."""
        ...
