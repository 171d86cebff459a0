"""Walk collection definitions and materialize every document into nodes."""

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

from loguru import logger

from docgraph.config import TRAVERSAL_CONCURRENCY
from docgraph.core.builder import NodeBuilder
from docgraph.core.naming import type_name_for_segments
from docgraph.core.registry import TypeRegistry
from docgraph.core.sync import LiveSyncMonitor
from docgraph.downloader import ImageDownloadQueue
from docgraph.errors import FetchError, ResolutionError
from docgraph.models.node import CollectionDefinition, DocumentRecord, documents_of
from docgraph.protocols import DocumentSourceProtocol


class CollectionTraverser:
    """Recursively fetch collections and register their documents as nodes.

    Sibling definitions, and the child subtrees of each fetched document, run
    concurrently; every fan-out waits for all of its tasks before returning.
    A failing subtree never stops its siblings, but the first failure (in
    definition order) is re-raised once they have all settled.

    Each fan-out owns at most TRAVERSAL_CONCURRENCY threads, so deep trees
    multiply threads per level. Fetches are what load the source, and those
    share one bound across the whole traversal: at most ``max_fetches`` run at
    once no matter how many threads are waiting.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol,
        registry: TypeRegistry,
        builder: NodeBuilder,
        *,
        downloads: ImageDownloadQueue | None = None,
        monitor: LiveSyncMonitor | None = None,
        max_fetches: int = TRAVERSAL_CONCURRENCY,
    ) -> None:
        if max_fetches < 1:
            msg = f"max_fetches must be at least 1, got {max_fetches}"
            raise ValueError(msg)
        self.source = source
        self.registry = registry
        self.builder = builder
        self.downloads = downloads
        self.monitor = monitor
        self._fetch_slots = threading.BoundedSemaphore(max_fetches)

    def traverse(
        self,
        definitions: Sequence[CollectionDefinition],
        parent: DocumentRecord | None = None,
    ) -> None:
        """Materialize every definition and its descendants."""
        _run_all([partial(self._process, definition, parent) for definition in definitions])

    def _process(self, definition: CollectionDefinition, parent: DocumentRecord | None) -> None:
        handle, segments = self._resolve(definition, parent)
        name = definition.name or type_name_for_segments(segments)

        logger.debug("Fetching {}", name)
        try:
            with self._fetch_slots:
                result = self.source.fetch(handle)
        except Exception as e:
            raise FetchError(name, f"fetch failed: {e}") from e

        records = [DocumentRecord.from_raw(raw, parent) for raw in documents_of(result)]
        if not records:
            logger.debug("No nodes for {}", name)

        if not definition.skip:
            logger.debug("Creating type {} with {} nodes", name, len(records))
            self.registry.ensure_type(name)
            for record in records:
                node, images = self.builder.build(
                    record, definition.slug_selector, definition.id_selector
                )
                self.registry.upsert(name, node)
                if self.downloads is not None:
                    for image in images:
                        self.downloads.enqueue(image)

        if definition.children:
            _run_all([partial(self.traverse, definition.children, record) for record in records])

        if definition.watch:
            self._watch(definition, handle, name, parent)

    def _resolve(
        self, definition: CollectionDefinition, parent: DocumentRecord | None
    ) -> tuple[Any, tuple[str, ...]]:
        reference = definition.reference
        label = definition.name or repr(reference)
        try:
            if definition.parent_dependent:
                if parent is None:
                    logger.warning(
                        "Collection {} depends on a parent document but has none, resolving anyway",
                        label,
                    )
                reference = reference(parent)
            handle = self.source.resolve(reference)
            segments = tuple(self.source.segments(handle))
        except Exception as e:
            raise ResolutionError(label, f"cannot resolve reference: {e}") from e
        return handle, segments

    def _watch(
        self,
        definition: CollectionDefinition,
        handle: Any,
        name: str,
        parent: DocumentRecord | None,
    ) -> None:
        if self.monitor is None:
            logger.debug("Live sync is off, not watching {}", name)
            return
        if parent is not None:
            logger.warning("Only top-level collections can be watched, ignoring watch on {}", name)
            return
        if definition.skip:
            logger.warning("Collection {} is skipped and has no type to watch", name)
            return
        self.monitor.watch(
            handle,
            name,
            slug_selector=definition.slug_selector,
            id_selector=definition.id_selector,
        )


def _run_all(tasks: list[Callable[[], None]]) -> None:
    """Run tasks concurrently, wait for all, then re-raise the first failure."""
    if not tasks:
        return
    with ThreadPoolExecutor(max_workers=min(len(tasks), TRAVERSAL_CONCURRENCY)) as pool:
        futures = [pool.submit(task) for task in tasks]

    errors = [e for e in (f.exception() for f in futures) if e is not None]
    for extra in errors[1:]:
        logger.error("Subtree also failed: {}", extra)
    if errors:
        raise errors[0]
