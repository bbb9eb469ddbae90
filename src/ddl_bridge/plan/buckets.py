"""
Statement buckets: rendered SQL grouped by the change category it came from.

Buckets are concatenated in `BUCKET_PRECEDENCE`: containers before the
collections and views that live in them, collection-level changes before
column-level ones, views last.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from src.enums import BucketCategory

BUCKET_PRECEDENCE: tuple[BucketCategory, ...] = (
    BucketCategory.CONTAINER_ADDED,
    BucketCategory.CONTAINER_DELETED,
    BucketCategory.CONTAINER_MODIFIED,
    BucketCategory.COLLECTION_ADDED,
    BucketCategory.COLLECTION_DELETED,
    BucketCategory.COLLECTION_MODIFIED,
    BucketCategory.COLUMN_ADDED,
    BucketCategory.COLUMN_DELETED,
    BucketCategory.COLUMN_MODIFIED,
    BucketCategory.VIEW_ADDED,
    BucketCategory.VIEW_DELETED,
    BucketCategory.VIEW_MODIFIED,
)


@dataclass(frozen=True)
class StatementBucket:
    """Ordered statements sharing one change category."""

    category: BucketCategory
    statements: tuple[str, ...] = ()

    @classmethod
    def of(cls, category: BucketCategory, statements: Iterable[str | None]) -> StatementBucket:
        """Build a bucket, dropping None/empty fragments and trimming the rest."""
        cleaned = tuple(s.strip() for s in statements if s and s.strip())
        return cls(category=category, statements=cleaned)


def order_buckets(buckets: Iterable[StatementBucket]) -> list[StatementBucket]:
    """Sort buckets by precedence; buckets of the same category keep their order."""
    rank = {category: index for index, category in enumerate(BUCKET_PRECEDENCE)}
    return sorted(buckets, key=lambda bucket: rank[bucket.category])


def flatten_buckets(buckets: Iterable[StatementBucket]) -> list[str]:
    """All statements of the ordered buckets, in order."""
    return [statement for bucket in order_buckets(buckets) for statement in bucket.statements]
