"""Load-time entry point: wire collaborators together and run the initial load."""

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from docgraph.config import SourceOptions
from docgraph.core.builder import NodeBuilder
from docgraph.core.normalizer import FieldNormalizer, make_uid
from docgraph.core.registry import TypeRegistry
from docgraph.core.sync import LiveSyncMonitor
from docgraph.core.traversal import CollectionTraverser
from docgraph.downloader import ImageDownloadQueue
from docgraph.errors import ConfigurationError
from docgraph.logging_config import configure_logging
from docgraph.protocols import ContentStoreProtocol, DocumentSourceProtocol


@dataclass(frozen=True)
class LoadStats:
    """Summary of an initial load."""

    types: int
    nodes: int
    images_registered: int
    images_failed: int


class SourceLoader:
    """Materialize the configured collections into the content store.

    The source and store are owned by the caller; so are the watches started
    by :meth:`load`, which stay open until :meth:`close`.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol | None,
        store: ContentStoreProtocol | None,
        options: SourceOptions,
        *,
        slugify: Callable[[str], str] | None,
        uid: Callable[[str], str] = make_uid,
        configure: bool = False,
    ) -> None:
        if not options.collections:
            msg = "At least one collection is required"
            raise ConfigurationError(msg)
        if source is None:
            msg = "Missing document source"
            raise ConfigurationError(msg)
        if store is None:
            msg = "Missing content store"
            raise ConfigurationError(msg)
        if slugify is None:
            msg = "Missing slugify function"
            raise ConfigurationError(msg)

        if configure:
            configure_logging(verbose=options.debug)

        self.options = options
        self.registry = TypeRegistry(store)

        self.downloads: ImageDownloadQueue | None = None
        if not options.ignore_images:
            self.downloads = ImageDownloadQueue(
                options.image_directory,
                concurrency=options.download_concurrency,
                timeout=options.download_timeout,
            )

        normalizer = FieldNormalizer(
            self.registry.create_reference if options.resolve_references else None,
            image_directory=None if options.ignore_images else options.image_directory,
            uid=uid,
        )
        builder = NodeBuilder(normalizer, slugify)

        self.monitor: LiveSyncMonitor | None = None
        if options.live_sync:
            self.monitor = LiveSyncMonitor(source, self.registry, builder, downloads=self.downloads)

        self.traverser = CollectionTraverser(
            source, self.registry, builder, downloads=self.downloads, monitor=self.monitor
        )

    def load(self) -> LoadStats:
        """Traverse every collection, then wait for image downloads to settle."""
        self.traverser.traverse(self.options.collections)

        images_failed = 0
        images_registered = 0
        if self.downloads is not None:
            images_failed = self.downloads.drain()
            images_registered = self.downloads.registered

        stats = LoadStats(
            types=len(self.registry.type_names),
            nodes=self.registry.node_count(),
            images_registered=images_registered,
            images_failed=images_failed,
        )
        logger.info(
            "Load complete: {} types, {} nodes, {} images ({} failed)",
            stats.types, stats.nodes, stats.images_registered, stats.images_failed,
        )
        return stats

    def close(self) -> None:
        """Stop live sync and release the download pool."""
        if self.monitor is not None:
            self.monitor.close()
        if self.downloads is not None:
            self.downloads.close()
