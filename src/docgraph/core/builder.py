"""Assemble nodes from fetched document records."""

from collections.abc import Callable

from loguru import logger

from docgraph.config import PARENT_FIELD
from docgraph.core.normalizer import FieldNormalizer
from docgraph.models.node import DocumentRecord, IdSelector, ImageRegistration, Node, SlugSelector


class NodeBuilder:
    """Build a node's identity, path and normalized fields from a record."""

    def __init__(self, normalizer: FieldNormalizer, slugify: Callable[[str], str]) -> None:
        self.normalizer = normalizer
        self.slugify = slugify

    def get_id(self, record: DocumentRecord, selector: IdSelector = None) -> str:
        """Return the node id, falling back to the record's own id."""
        if selector:
            value = selector(record) if callable(selector) else record.fields.get(selector)
            if value:
                return str(value)
            logger.warning(
                "Id selector {!r} yielded nothing for {}, using document id", selector, record.id
            )
        return record.id

    def get_path(self, record: DocumentRecord, selector: SlugSelector = None) -> str:
        """Return the node path; always starts with ``/``.

        Tries the selector, then a ``slug`` field, then the record id.
        """
        path: str | None = None
        if selector:
            if callable(selector):
                value = selector(record, self.slugify)
                path = str(value) if value else None
            elif record.fields.get(selector):
                path = self.slugify(str(record.fields[selector]))
            if not path:
                logger.warning(
                    "Slug selector {!r} yielded nothing for {}, trying default instead",
                    selector,
                    record.id,
                )

        if not path:
            slug = record.fields.get("slug")
            path = self.slugify(str(slug)) if slug else record.id

        if not path.startswith("/"):
            path = "/" + path
        return path

    def build(
        self,
        record: DocumentRecord,
        slug_selector: SlugSelector = None,
        id_selector: IdSelector = None,
    ) -> tuple[Node, list[ImageRegistration]]:
        """Build a node, returning it with the images its fields refer to."""
        node_id = self.get_id(record, id_selector)
        path = self.get_path(record, slug_selector)
        parent_ref = record.parent.source_ref if record.parent else None

        fields, images = self.normalizer.normalize(
            {**record.fields, "id": node_id, "path": path, PARENT_FIELD: parent_ref}
        )
        logger.debug("{}: {}", node_id, path)
        return Node(id=node_id, path=path, fields=fields, parent_ref=fields[PARENT_FIELD]), images
