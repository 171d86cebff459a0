"""Exceptions raised by docgraph."""


class DocgraphError(Exception):
    """Base class for all docgraph errors."""


class ConfigurationError(DocgraphError):
    """Missing collection definitions or collaborators."""


class TraversalError(DocgraphError):
    """A collection subtree could not be materialized."""

    def __init__(self, collection: str, message: str) -> None:
        super().__init__(f"{collection}: {message}")
        self.collection = collection


class ResolutionError(TraversalError):
    """The collection reference could not be resolved into a query."""


class FetchError(TraversalError):
    """The resolved query failed to execute."""


class DownloadError(DocgraphError):
    """A single image transfer failed or ran past its deadline."""
