"""Tagged field values emitted by document sources.

Sources hand rich values over already tagged, so the normalizer matches on a
closed set of variants instead of probing client-library types. Plain Python
scalars, ``datetime``/``date``, lists, tuples and dicts make up the rest of
the set.
"""

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True)
class Timestamp:
    """A point in time as seconds plus nanoseconds since the epoch (UTC)."""

    seconds: int
    nanoseconds: int = 0

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.seconds, tz=UTC).replace(
            microsecond=self.nanoseconds // 1000
        )


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class Reference:
    """A pointer to a document, by its full path.

    Segments alternate collection and document ids, so a document path always
    has an even number of segments: ``("posts", "p1", "comments", "c1")``.
    """

    segments: tuple[str, ...]

    @property
    def id(self) -> str:
        return self.segments[-1]

    @property
    def collection_path(self) -> tuple[str, ...]:
        return self.segments[:-1]

    @classmethod
    def from_path(cls, path: str) -> "Reference":
        return cls(tuple(seg for seg in path.split("/") if seg))
