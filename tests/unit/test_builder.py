"""Tests for NodeBuilder: ids, paths and normalized fields."""

from pathlib import Path
from typing import Any

from docgraph.core.builder import NodeBuilder
from docgraph.core.normalizer import FieldNormalizer
from docgraph.models.node import DocumentRecord
from docgraph.models.values import Reference
from tests.unit.fakes import slugify


def _record(doc_id: str = "doc1", parent: DocumentRecord | None = None, **fields: Any) -> DocumentRecord:
    return DocumentRecord(fields=fields, id=doc_id, source_ref=Reference(("posts", doc_id)), parent=parent)


def test_get_path_uses_function_selector(builder: NodeBuilder) -> None:
    path = builder.get_path(_record(), lambda record, slugify: "foo")

    assert path == "/foo"


def test_get_path_function_selector_receives_slugify(builder: NodeBuilder) -> None:
    path = builder.get_path(_record(title="Hello World"), lambda r, s: f"/blog/{s(r.fields['title'])}")

    assert path == "/blog/hello-world"


def test_get_path_slugifies_field_selector(builder: NodeBuilder) -> None:
    path = builder.get_path(_record(title="Hello World"), "title")

    assert path == "/hello-world"


def test_get_path_falls_back_to_slug_field(builder: NodeBuilder) -> None:
    assert builder.get_path(_record(slug="bar")) == "/bar"


def test_get_path_falls_back_to_document_id(builder: NodeBuilder) -> None:
    assert builder.get_path(_record("abc123")) == "/abc123"


def test_get_path_warns_when_selector_yields_nothing(
    builder: NodeBuilder, log_messages: list[str]
) -> None:
    path = builder.get_path(_record(slug="bar"), "missing")

    assert path == "/bar"
    assert any(m.startswith("WARNING Slug selector 'missing'") for m in log_messages)


def test_get_id_uses_field_selector(builder: NodeBuilder) -> None:
    assert builder.get_id(_record(sku=1234), "sku") == "1234"


def test_get_id_uses_function_selector(builder: NodeBuilder) -> None:
    assert builder.get_id(_record(), lambda record: record.id.upper()) == "DOC1"


def test_get_id_falls_back_with_warning(builder: NodeBuilder, log_messages: list[str]) -> None:
    node_id = builder.get_id(_record(), "sku")

    assert node_id == "doc1"
    assert any(m.startswith("WARNING Id selector 'sku'") for m in log_messages)


def test_build_merges_identity_into_fields(builder: NodeBuilder) -> None:
    node, images = builder.build(_record(title="Hi", slug="hi"))

    assert node.id == "doc1"
    assert node.path == "/hi"
    assert node.fields == {"title": "Hi", "slug": "hi", "id": "doc1", "path": "/hi", "_parent": None}
    assert node.parent_ref is None
    assert images == []


def test_build_links_parent_as_store_reference(builder: NodeBuilder) -> None:
    parent = DocumentRecord(fields={}, id="u1", source_ref=Reference(("users", "u1")))
    child = DocumentRecord(
        fields={}, id="p1", source_ref=Reference(("users", "u1", "posts", "p1")), parent=parent
    )

    node, _ = builder.build(child)

    assert node.parent_ref == {"typeName": "FireUsers", "id": "u1"}
    assert node.fields["_parent"] == node.parent_ref


def test_build_reports_images_from_fields(tmp_path: Path) -> None:
    normalizer = FieldNormalizer(None, image_directory=tmp_path)
    builder = NodeBuilder(normalizer, slugify)

    node, images = builder.build(_record(gallery=["https://x.example.com/a.jpg", "https://x.example.com/b.gif"]))

    assert [image.url for image in images] == ["https://x.example.com/a.jpg", "https://x.example.com/b.gif"]
    assert node.fields["gallery"] == [images[0].local_path, images[1].local_path]
