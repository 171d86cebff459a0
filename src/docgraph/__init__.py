"""Materialize nested document collections into a typed node graph."""

from docgraph.config import SourceOptions
from docgraph.errors import ConfigurationError, FetchError, ResolutionError
from docgraph.loader import LoadStats, SourceLoader
from docgraph.models.node import CollectionDefinition, Node
from docgraph.protocols import ContentStoreProtocol, DocumentSourceProtocol

__all__ = [
    "CollectionDefinition",
    "ConfigurationError",
    "ContentStoreProtocol",
    "DocumentSourceProtocol",
    "FetchError",
    "LoadStats",
    "Node",
    "ResolutionError",
    "SourceLoader",
    "SourceOptions",
]
