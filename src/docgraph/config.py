"""Configuration constants and options for docgraph."""

import re
from dataclasses import dataclass, field

from docgraph.models.node import CollectionDefinition

# Prepended to every derived type name.
TYPE_NAME_PREFIX: str = "Fire"

# Field holding the parent document reference on every node.
PARENT_FIELD: str = "_parent"

# Local mirror directory, relative to the working directory.
DEFAULT_IMAGE_DIRECTORY: str = "fg_images"

# Image download pool.
DOWNLOAD_CONCURRENCY: int = 4
DOWNLOAD_TIMEOUT: float = 5.0
DOWNLOAD_CHUNK_SIZE: int = 8 * 1024

# Threads per traversal fan-out (siblings, or one parent's documents). Nested
# fan-outs each get their own pool; source fetches across all of them share
# a single bound of the same size.
TRAVERSAL_CONCURRENCY: int = 16

# Remote images worth mirroring: https only, known extension, optional query/fragment.
IMAGE_URL_PATTERN: re.Pattern[str] = re.compile(
    r"^https://.*/.*\.(jpg|png|svg|gif|jpeg)($|[?#])", re.IGNORECASE
)


@dataclass
class SourceOptions:
    """Options accepted by :class:`docgraph.loader.SourceLoader`."""

    collections: list[CollectionDefinition] = field(default_factory=list)
    debug: bool = False
    ignore_images: bool = False
    image_directory: str = DEFAULT_IMAGE_DIRECTORY
    live_sync: bool = False
    resolve_references: bool = True
    download_concurrency: int = DOWNLOAD_CONCURRENCY
    download_timeout: float = DOWNLOAD_TIMEOUT
