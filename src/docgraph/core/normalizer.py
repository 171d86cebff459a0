"""Recursive field normalization."""

import hashlib
from collections.abc import Callable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any, NamedTuple

from loguru import logger

from docgraph.config import DEFAULT_IMAGE_DIRECTORY, IMAGE_URL_PATTERN
from docgraph.core.naming import type_name
from docgraph.downloader import get_filename, get_full_path
from docgraph.models.node import ImageRegistration
from docgraph.models.values import GeoPoint, Reference, Timestamp


def make_uid(value: str) -> str:
    """Stable id for a string, used as the image dedup key."""
    return hashlib.sha1(value.encode("utf-8")).hexdigest()


class Normalized(NamedTuple):
    """A normalized value plus the images discovered inside it."""

    value: Any
    images: list[ImageRegistration]


class FieldNormalizer:
    """Turn source field values into plain values the content store accepts.

    Image URLs are replaced by the local path they will be mirrored to, and
    reported back in :attr:`Normalized.images`; nothing is downloaded here.
    References become store references when ``create_reference`` is given.
    """

    def __init__(
        self,
        create_reference: Callable[[str, str], Any] | None = None,
        *,
        image_directory: str | Path | None = DEFAULT_IMAGE_DIRECTORY,
        uid: Callable[[str], str] = make_uid,
    ) -> None:
        self.create_reference = create_reference
        self.image_directory = image_directory
        self.uid = uid

    def normalize(self, value: Any) -> Normalized:
        images: list[ImageRegistration] = []
        return Normalized(self._normalize(value, images), images)

    def _normalize(self, value: Any, images: list[ImageRegistration]) -> Any:
        if not value:
            return value

        match value:
            case str():
                directory = self.image_directory
                if directory is not None and IMAGE_URL_PATTERN.match(value):
                    return self._register_image(value, directory, images)
                return value
            case bool() | int() | float():
                return value
            case datetime() | date():
                return value
            case Timestamp():
                return value.to_datetime()
            case GeoPoint(latitude=lat, longitude=long):
                return {"lat": lat, "long": long}
            case Reference():
                return self._reference(value)
            case list():
                return [self._normalize(item, images) for item in value]
            case tuple():
                return tuple(self._normalize(item, images) for item in value)
            case Mapping():
                return {key: self._normalize(item, images) for key, item in value.items()}

        logger.warning("Unsupported field value {!r}, replacing with None", value)
        return None

    def _register_image(
        self, url: str, directory: str | Path, images: list[ImageRegistration]
    ) -> str:
        image = ImageRegistration(
            id=self.uid(url),
            url=url,
            local_path=get_full_path(directory, get_filename(url)),
        )
        if all(found.id != image.id for found in images):
            images.append(image)
        return image.local_path

    def _reference(self, ref: Reference) -> Any:
        if self.create_reference is None:
            logger.warning(
                "Reference support is off, replacing {!r} with None", "/".join(ref.segments)
            )
            return None
        return self.create_reference(type_name(ref.collection_path), ref.id)
