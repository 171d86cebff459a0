"""Domain models for collection traversal and node materialization."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from docgraph.models.values import Reference

# Field name, or fn(record) -> id
IdSelector = str | Callable[["DocumentRecord"], Any] | None
# Field name, or fn(record, slugify) -> slug
SlugSelector = str | Callable[["DocumentRecord", Callable[[str], str]], Any] | None


@dataclass(frozen=True)
class CollectionDefinition:
    """One slice of the source hierarchy to ingest.

    ``reference`` is either a static reference understood by the document
    source, or a callable taking the parent :class:`DocumentRecord` (``None``
    at the root) and returning one.
    """

    reference: Any
    name: str | None = None
    id_selector: IdSelector = None
    slug_selector: SlugSelector = None
    skip: bool = False
    watch: bool = False
    children: Sequence["CollectionDefinition"] = ()

    @property
    def parent_dependent(self) -> bool:
        return callable(self.reference)


@dataclass(frozen=True)
class RawDocument:
    """A document as delivered by the source, before wrapping."""

    id: str
    fields: dict[str, Any]
    ref: Reference


@dataclass(frozen=True)
class MultiDocument:
    """Fetch result of a collection query."""

    documents: tuple[RawDocument, ...]


@dataclass(frozen=True)
class SingleDocument:
    """Fetch result of a reference pointing at exactly one document."""

    document: RawDocument


@dataclass(frozen=True)
class EmptyResult:
    """Fetch result with nothing in it."""


FetchResult = MultiDocument | SingleDocument | EmptyResult


def documents_of(result: FetchResult) -> list[RawDocument]:
    """Flatten any fetch result shape into a list of raw documents."""
    match result:
        case MultiDocument(documents=documents):
            return list(documents)
        case SingleDocument(document=document):
            return [document]
        case EmptyResult():
            return []
    msg = f"unexpected fetch result: {result!r}"
    raise TypeError(msg)


@dataclass(frozen=True)
class DocumentRecord:
    """One fetched document plus its identity and parent linkage."""

    fields: dict[str, Any]
    id: str
    source_ref: Reference
    parent: "DocumentRecord | None" = None

    @classmethod
    def from_raw(cls, raw: RawDocument, parent: "DocumentRecord | None" = None) -> "DocumentRecord":
        return cls(fields=dict(raw.fields), id=raw.id, source_ref=raw.ref, parent=parent)


@dataclass(frozen=True)
class Node:
    """A normalized record stored in a type, addressable by id and path."""

    id: str
    path: str
    fields: dict[str, Any] = field(default_factory=dict)
    parent_ref: Any = None


@dataclass(frozen=True)
class ImageRegistration:
    """One remote image to mirror locally, keyed by the hash of its URL."""

    id: str
    url: str
    local_path: str
