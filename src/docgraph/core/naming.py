"""Derive type names from collection paths."""

from collections.abc import Sequence

from docgraph.config import TYPE_NAME_PREFIX


def capitalize(segment: str) -> str:
    """Uppercase the first character only, leaving the rest as-is."""
    return segment[:1].upper() + segment[1:]


def type_name(collection_path: Sequence[str], *, prefix: str = TYPE_NAME_PREFIX) -> str:
    """Return the type name for a collection path.

    The path alternates collection and document ids and ends with a
    collection id, e.g. ``("users", "u1", "posts")``. Parent collections are
    capitalized and prepended in reverse order, followed by the leaf:
    ``("users", "u1", "posts", "p1", "comments")`` -> ``FirePostsUsersComments``.
    """
    if not collection_path:
        msg = "collection path is empty"
        raise ValueError(msg)
    *parents, leaf = collection_path
    parent_collections = [capitalize(seg) for seg in parents[::2]]
    return prefix + "".join(reversed(parent_collections)) + capitalize(leaf)


def type_name_for_segments(segments: Sequence[str], *, prefix: str = TYPE_NAME_PREFIX) -> str:
    """Type name for a source handle's segments.

    Odd-length segments name a collection; even-length segments name a single
    document, whose type is that of its collection.
    """
    if len(segments) % 2 == 0:
        segments = segments[:-1]
    return type_name(segments, prefix=prefix)
