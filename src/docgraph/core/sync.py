"""Keep types in step with change notifications from the source."""

import threading
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any

from loguru import logger

from docgraph.core.builder import NodeBuilder
from docgraph.core.registry import TypeRegistry
from docgraph.downloader import ImageDownloadQueue
from docgraph.models.node import (
    DocumentRecord,
    FetchResult,
    IdSelector,
    ImageRegistration,
    SlugSelector,
    documents_of,
)
from docgraph.protocols import DocumentSourceProtocol, SubscriptionProtocol


class WatchState(Enum):
    IDLE = "idle"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


@dataclass(frozen=True)
class SyncStats:
    """Outcome of one reconciled notification."""

    added: int
    updated: int
    removed: int
    images_failed: int = 0


@dataclass
class Watch:
    """A subscription on one collection, feeding one type."""

    handle: Any
    type_name: str
    slug_selector: SlugSelector = None
    id_selector: IdSelector = None
    parent: DocumentRecord | None = None
    state: WatchState = WatchState.IDLE
    notifications: int = 0
    subscription: SubscriptionProtocol | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class LiveSyncMonitor:
    """Subscribe to collections and reconcile their types on every notification.

    Each notification is treated as the complete current contents of the
    collection: present documents are added or updated, and every node of
    the type missing from the notification is removed. Notifications for one
    watch are handled one at a time; different watches may run concurrently.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol,
        registry: TypeRegistry,
        builder: NodeBuilder,
        *,
        downloads: ImageDownloadQueue | None = None,
    ) -> None:
        self.source = source
        self.registry = registry
        self.builder = builder
        self.downloads = downloads
        self.watches: list[Watch] = []
        self._lock = threading.Lock()

    def watch(
        self,
        handle: Any,
        type_name: str,
        *,
        slug_selector: SlugSelector = None,
        id_selector: IdSelector = None,
        parent: DocumentRecord | None = None,
    ) -> Watch:
        """Subscribe to the collection behind ``handle``. Does not block."""
        watch = Watch(
            handle=handle,
            type_name=type_name,
            slug_selector=slug_selector,
            id_selector=id_selector,
            parent=parent,
        )
        # Set before subscribing: sources may deliver the first notification synchronously.
        watch.state = WatchState.SUBSCRIBED
        try:
            watch.subscription = self.source.subscribe(
                handle, partial(self._on_notification, watch)
            )
        except Exception:
            watch.state = WatchState.IDLE
            raise
        with self._lock:
            self.watches.append(watch)
        logger.debug("Watching {}", type_name)
        return watch

    def unsubscribe(self, watch: Watch) -> None:
        with watch.lock:
            if watch.state is not WatchState.SUBSCRIBED:
                return
            watch.state = WatchState.UNSUBSCRIBED
        if watch.subscription is not None:
            watch.subscription.unsubscribe()
        logger.debug("Stopped watching {}", watch.type_name)

    def close(self) -> None:
        """Unsubscribe every watch."""
        with self._lock:
            watches = list(self.watches)
        for watch in watches:
            self.unsubscribe(watch)

    def reconcile(self, watch: Watch, result: FetchResult) -> SyncStats | None:
        """Apply one notification to the watched type.

        Returns None when the watch is no longer subscribed.
        """
        with watch.lock:
            if watch.state is not WatchState.SUBSCRIBED:
                return None
            watch.notifications += 1

            present: set[str] = set()
            added = updated = 0
            images: list[ImageRegistration] = []
            for raw in documents_of(result):
                record = DocumentRecord.from_raw(raw, watch.parent)
                node, found = self.builder.build(record, watch.slug_selector, watch.id_selector)
                present.add(node.id)
                images.extend(found)
                if self.registry.upsert(watch.type_name, node):
                    added += 1
                else:
                    updated += 1

            removed = self.registry.retain(watch.type_name, present)

            images_failed = 0
            if images and self.downloads is not None:
                tasks = [self.downloads.enqueue(image) for image in images]
                images_failed = self.downloads.wait(tasks)

        stats = SyncStats(
            added=added, updated=updated, removed=len(removed), images_failed=images_failed
        )
        logger.debug(
            "Synced {}: {} added, {} updated, {} removed",
            watch.type_name, stats.added, stats.updated, stats.removed,
        )
        return stats

    def _on_notification(self, watch: Watch, result: FetchResult) -> None:
        try:
            self.reconcile(watch, result)
        except Exception:
            logger.exception("Failed to sync {}, keeping current nodes", watch.type_name)
