"""SQLAlchemy schema for the feed cache.

Two related tables hold the single cached snapshot:

- ``feed_cache``: one row per snapshot carrying the timestamp
- ``feed_cache_images``: one row per image, linked to its snapshot and
  ordered by an explicit ``position`` column

The schema is published as a named ``FeedModel`` and resolved explicitly by
name when a store is opened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    Uuid,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

from feedstore.shared.constants import Storage, Tables
from feedstore.shared.errors import ErrorCode, ErrorContext, ModelNotFoundError

logger = logging.getLogger(__name__)

Base = declarative_base()


class IsoDateTime(TypeDecorator):  # type: ignore[type-arg]
    """Datetime stored as ISO-8601 text.

    Keeps microseconds and the UTC offset, so naive and aware datetimes
    come back exactly as they were written.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if not isinstance(value, datetime):
            msg = f"Expected datetime, got {type(value).__name__}"
            raise TypeError(msg)
        return value.isoformat()

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return datetime.fromisoformat(value)


class CachedFeedRecord(Base):  # type: ignore[valid-type,misc]
    """Stored snapshot: the timestamp plus the ordered image rows."""

    __tablename__: str = Tables.FEED

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(IsoDateTime, nullable=False)

    images = relationship(
        "CachedImageRecord",
        back_populates="feed",
        order_by="CachedImageRecord.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"CachedFeedRecord(id={self.id!r}, timestamp={self.timestamp!r})"


class CachedImageRecord(Base):  # type: ignore[valid-type,misc]
    """Stored feed image, positioned within its snapshot."""

    __tablename__: str = Tables.IMAGES

    id = Column(Integer, primary_key=True, autoincrement=True)
    feed_id = Column(
        Integer,
        ForeignKey(f"{Tables.FEED}.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False)

    image_id = Column(Uuid, nullable=False)
    image_description = Column(Text, nullable=True)
    image_location = Column(Text, nullable=True)
    url = Column(Text, nullable=False)

    feed = relationship("CachedFeedRecord", back_populates="images")

    __table_args__ = (Index("idx_feed_cache_images_feed_position", "feed_id", "position"),)

    def __repr__(self) -> str:
        return (
            f"CachedImageRecord(feed_id={self.feed_id!r}, position={self.position!r}, "
            f"image_id={self.image_id!r})"
        )


@dataclass(frozen=True)
class FeedModel:
    """A named schema: its metadata and the two mapped record classes."""

    name: str
    metadata: MetaData
    feed_class: type[CachedFeedRecord]
    image_class: type[CachedImageRecord]


FEED_DATA_MODEL = FeedModel(
    name=Storage.DEFAULT_MODEL_NAME,
    metadata=Base.metadata,
    feed_class=CachedFeedRecord,
    image_class=CachedImageRecord,
)

_MODELS: dict[str, FeedModel] = {FEED_DATA_MODEL.name: FEED_DATA_MODEL}


def available_models() -> list[str]:
    """Return the names of all registered models."""
    return sorted(_MODELS)


def resolve_model(model: str | FeedModel) -> FeedModel:
    """Return the model registered under ``model``.

    Args:
        model: A model name or an already resolved ``FeedModel``

    Returns:
        The resolved model

    Raises:
        ModelNotFoundError: If no model is registered under that name
    """
    if isinstance(model, FeedModel):
        return model

    resolved = _MODELS.get(model)
    if resolved is None:
        raise ModelNotFoundError(
            ErrorCode.MODEL_NOT_FOUND,
            f"Schema model not found: {model!r}",
            ErrorContext(
                operation="resolve_model",
                additional_data={"model": str(model), "available": ", ".join(available_models())},
            ),
        )
    logger.debug("Resolved schema model %s", resolved.name)
    return resolved


__all__ = [
    "FEED_DATA_MODEL",
    "Base",
    "CachedFeedRecord",
    "CachedImageRecord",
    "FeedModel",
    "IsoDateTime",
    "available_models",
    "resolve_model",
]
