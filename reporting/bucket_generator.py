from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from reporting.time_grain import (
    TimeGrain,
    add_one_grain_unit,
    align_to_grain_start,
    format_bucket_label,
    grain_units_between,
    normalize_grain,
    shift_grain,
)


@dataclass(frozen=True)
class Bucket:
    start: date
    grain: TimeGrain
    label: str
    metrics: Dict[str, Decimal] = field(default_factory=dict)

    def with_metrics(self, metrics: Dict[str, Decimal]) -> "Bucket":
        return Bucket(start=self.start, grain=self.grain, label=self.label, metrics=metrics)


def generate_buckets(
    min_date: date | datetime,
    max_date: date | datetime,
    grain: TimeGrain | str,
) -> List[Bucket]:
    """Return one empty bucket per grain period from ``min_date`` to ``max_date``.

    Both ends are aligned to the start of their period first, so the last
    bucket is the one containing ``max_date`` and periods with no activity
    still get a bucket.
    """
    grain = normalize_grain(grain)
    cursor = align_to_grain_start(min_date, grain)
    end_bucket = align_to_grain_start(max_date, grain)
    if cursor > end_bucket:
        raise ValueError("min_date must be on or before max_date.")

    buckets: List[Bucket] = []
    while cursor <= end_bucket:
        buckets.append(_empty_bucket(cursor, grain))
        cursor = add_one_grain_unit(cursor, grain)
    return buckets


def trailing_buckets(
    reference_date: date | datetime,
    grain: TimeGrain | str,
    periods: int,
) -> List[Bucket]:
    """Return ``periods`` consecutive buckets ending with ``reference_date``'s period."""
    grain = normalize_grain(grain)
    if periods < 1:
        raise ValueError("periods must be at least 1.")
    end_bucket = align_to_grain_start(reference_date, grain)
    start_bucket = shift_grain(end_bucket, grain, -(periods - 1))
    return generate_buckets(start_bucket, end_bucket, grain)


def locate_bucket(buckets: Sequence[Bucket], occurred_at: date | datetime) -> Optional[int]:
    # Buckets are contiguous, so the index follows from the distance to the first start.
    if not buckets:
        return None
    grain = buckets[0].grain
    aligned = align_to_grain_start(occurred_at, grain)
    index = grain_units_between(buckets[0].start, aligned, grain)
    if index < 0 or index >= len(buckets):
        return None
    if buckets[index].start != aligned:
        return None
    return index


def _empty_bucket(start: date, grain: TimeGrain) -> Bucket:
    return Bucket(start=start, grain=grain, label=format_bucket_label(start, grain))
