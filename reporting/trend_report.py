from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from reporting.bucket_generator import Bucket, generate_buckets, trailing_buckets
from reporting.category_ranker import (
    DEFAULT_TOP_N,
    RankedCategories,
    rank_categories,
    series_by_category,
)
from reporting.time_grain import TimeGrain, add_one_grain_unit, normalize_grain, select_grain
from reporting.transaction_aggregator import aggregate
from reporting.transactions import Transaction, filter_transactions, transaction_date_range

DEFAULT_TRAILING_PERIODS = 6


@dataclass(frozen=True)
class TrendReport:
    grain: TimeGrain
    buckets: List[Bucket] = field(default_factory=list)
    ranked: Optional[RankedCategories] = None


def build_trend_report(
    transactions: Iterable[Transaction],
    grain: TimeGrain | str | None = None,
) -> TrendReport:
    """Income and expense totals per bucket across the span of the data."""
    transactions = list(transactions)
    date_range = transaction_date_range(transactions)
    if date_range is None:
        return TrendReport(grain=_fallback_grain(grain))
    selected = select_grain(transactions, grain)
    buckets = generate_buckets(date_range[0], date_range[1], selected)
    return TrendReport(grain=selected, buckets=aggregate(transactions, buckets))


def build_category_trend_report(
    transactions: Iterable[Transaction],
    grain: TimeGrain | str | None = None,
    top_n: int = DEFAULT_TOP_N,
) -> TrendReport:
    """Stacked spend per ranked category, with the long tail under "Other".

    Buckets span every transaction so the series lines up with the income and
    expense trend for the same input; only expenses are ranked and summed.
    """
    transactions = list(transactions)
    ranked = rank_categories(transactions, top_n)
    date_range = transaction_date_range(transactions)
    if date_range is None:
        return TrendReport(grain=_fallback_grain(grain), ranked=ranked)
    selected = select_grain(transactions, grain)
    buckets = generate_buckets(date_range[0], date_range[1], selected)
    return TrendReport(
        grain=selected,
        buckets=series_by_category(transactions, buckets, ranked),
        ranked=ranked,
    )


def build_trailing_trend_report(
    transactions: Iterable[Transaction],
    reference_date: date | datetime,
    grain: TimeGrain | str = TimeGrain.MONTH,
    periods: int = DEFAULT_TRAILING_PERIODS,
) -> TrendReport:
    """Income and expenses for the ``periods`` buckets ending at ``reference_date``.

    Transactions outside the window are filtered out before aggregation.
    """
    grain = normalize_grain(grain)
    buckets = trailing_buckets(reference_date, grain, periods)
    window_end = add_one_grain_unit(buckets[-1].start, grain) - timedelta(days=1)
    in_window = filter_transactions(
        transactions,
        start_date=buckets[0].start,
        end_date=window_end,
    )
    return TrendReport(grain=grain, buckets=aggregate(in_window, buckets))


def _fallback_grain(grain: TimeGrain | str | None) -> TimeGrain:
    if grain is None:
        return TimeGrain.DAY
    return normalize_grain(grain)
