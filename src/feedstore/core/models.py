"""Domain models for the feed cache.

``FeedImage`` describes one feed item and ``CacheSnapshot`` is the whole
persisted state: an ordered feed plus the timestamp supplied by the caller.
The result classes are the values every store operation completes with.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Union
from uuid import UUID

from feedstore.shared.errors import FeedStoreError, create_validation_error


@dataclass(frozen=True)
class FeedImage:
    """A single cached feed item.

    Attributes:
        id: Globally unique identifier of the image
        description: Optional free text description
        location: Optional free text location
        url: Reference to the image resource
    """

    id: UUID
    description: str | None
    location: str | None
    url: str

    def __post_init__(self) -> None:
        if not isinstance(self.id, UUID):
            raise create_validation_error(
                f"FeedImage.id must be a UUID, got {type(self.id).__name__}",
                field="id",
            )
        if not isinstance(self.url, str) or not self.url:
            raise create_validation_error(
                "FeedImage.url must be a non-empty string",
                field="url",
            )


@dataclass(frozen=True)
class CacheSnapshot:
    """The complete timestamped state of the cache.

    ``feed`` keeps the caller's order; any sequence is accepted and stored
    as a tuple.
    """

    feed: tuple[FeedImage, ...]
    timestamp: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "feed", tuple(self.feed))
        for index, image in enumerate(self.feed):
            if not isinstance(image, FeedImage):
                raise create_validation_error(
                    f"CacheSnapshot.feed[{index}] must be a FeedImage, got {type(image).__name__}",
                    field="feed",
                )
        if not isinstance(self.timestamp, datetime):
            raise create_validation_error(
                "CacheSnapshot.timestamp must be a datetime",
                field="timestamp",
            )

    @classmethod
    def of(cls, feed: Sequence[FeedImage], timestamp: datetime) -> CacheSnapshot:
        """Build a snapshot from any sequence of images."""
        return cls(feed=tuple(feed), timestamp=timestamp)


@dataclass(frozen=True)
class EmptyCache:
    """Retrieve result: no snapshot is stored."""


@dataclass(frozen=True)
class FoundCache:
    """Retrieve result: the stored snapshot."""

    feed: tuple[FeedImage, ...]
    timestamp: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "feed", tuple(self.feed))

    @property
    def snapshot(self) -> CacheSnapshot:
        return CacheSnapshot(feed=self.feed, timestamp=self.timestamp)


@dataclass(frozen=True)
class Success:
    """Insert/delete result: the operation committed."""


@dataclass(frozen=True)
class Failure:
    """Any operation result: the operation could not be completed."""

    error: FeedStoreError | Exception


RetrieveResult = Union[EmptyCache, FoundCache, Failure]
InsertResult = Union[Success, Failure]
DeleteResult = Union[Success, Failure]


__all__ = [
    "CacheSnapshot",
    "DeleteResult",
    "EmptyCache",
    "Failure",
    "FeedImage",
    "FoundCache",
    "InsertResult",
    "RetrieveResult",
    "Success",
]
