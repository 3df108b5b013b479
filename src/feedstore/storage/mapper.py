"""Translation between cache snapshots and stored records.

Pure functions: ``to_storable`` builds new, session-less ORM records from a
snapshot and ``to_domain`` rebuilds a snapshot from a stored record. Image
order is carried by the ``position`` column in both directions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from feedstore.core.models import CacheSnapshot, FeedImage
from feedstore.shared.errors import DomainError
from feedstore.storage.schema import CachedFeedRecord, CachedImageRecord

logger = logging.getLogger(__name__)


def to_storable(snapshot: CacheSnapshot) -> CachedFeedRecord:
    """Create the parent record and its ordered image records.

    Args:
        snapshot: Snapshot to persist

    Returns:
        A new ``CachedFeedRecord`` not attached to any session
    """
    record = CachedFeedRecord(timestamp=snapshot.timestamp)
    record.images = [
        _to_storable_image(position, image) for position, image in enumerate(snapshot.feed)
    ]
    return record


def to_domain(record: CachedFeedRecord) -> CacheSnapshot:
    """Rebuild the snapshot held by ``record``.

    Image records that cannot be converted are skipped and logged instead
    of failing the whole read.
    """
    feed = tuple(_to_domain_images(record.images))
    return CacheSnapshot(feed=feed, timestamp=record.timestamp)


def _to_storable_image(position: int, image: FeedImage) -> CachedImageRecord:
    return CachedImageRecord(
        position=position,
        image_id=image.id,
        image_description=image.description,
        image_location=image.location,
        url=image.url,
    )


def _to_domain_images(records: Iterable[object]) -> Iterable[FeedImage]:
    for image_record in records:
        image = _to_domain_image(image_record)
        if image is not None:
            yield image


def _to_domain_image(image_record: object) -> FeedImage | None:
    if not isinstance(image_record, CachedImageRecord):
        logger.warning("Skipping unexpected image record type: %s", type(image_record).__name__)
        return None
    try:
        return FeedImage(
            id=image_record.image_id,
            description=image_record.image_description,
            location=image_record.image_location,
            url=image_record.url,
        )
    except DomainError as e:
        logger.warning(
            "Skipping image record at position %s: %s",
            image_record.position,
            e.message,
        )
        return None


__all__ = ["to_domain", "to_storable"]
