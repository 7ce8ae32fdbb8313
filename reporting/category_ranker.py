from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from reporting.bucket_generator import Bucket, locate_bucket
from reporting.transaction_aggregator import log_orphan, log_unbucketed
from reporting.transactions import Transaction

DEFAULT_TOP_N = 5
OTHER_CATEGORY = "Other"
OVERFLOW_SUFFIX = " (overflow)"
ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal


@dataclass(frozen=True)
class RankedCategories:
    top: List[CategoryTotal] = field(default_factory=list)
    other: Optional[CategoryTotal] = None

    @property
    def names(self) -> List[str]:
        return [entry.category for entry in self.top]

    @property
    def entries(self) -> List[CategoryTotal]:
        if self.other is None:
            return list(self.top)
        return [*self.top, self.other]

    @property
    def other_key(self) -> str:
        if self.other is not None:
            return self.other.category
        return overflow_category_name(self.names)


@dataclass(frozen=True)
class CategoryShare:
    category: str
    total: Decimal
    percentage_of_total: Decimal


def rank_categories(
    transactions: Iterable[Transaction],
    top_n: int = DEFAULT_TOP_N,
) -> RankedCategories:
    """Rank expense categories by total spend.

    Totals are collected in first-seen order and sorted with a stable sort, so
    categories with equal totals keep the order in which they first appeared.
    Everything past ``top_n`` is summed into a single "Other" entry, which is
    omitted when nothing overflows. If a ranked user category is itself named
    "Other", the overflow entry becomes "Other (overflow)".
    """
    if top_n < 1:
        raise ValueError("top_n must be at least 1.")

    totals: Dict[str, Decimal] = {}
    for txn in transactions:
        if not txn.is_expense:
            continue
        category = txn.category_label
        totals[category] = totals.get(category, ZERO) + txn.amount

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    top = [CategoryTotal(category=name, total=total) for name, total in ranked[:top_n]]
    remainder = ranked[top_n:]
    if not remainder:
        return RankedCategories(top=top)
    other_total = sum((total for _, total in remainder), ZERO)
    return RankedCategories(
        top=top,
        other=CategoryTotal(
            category=overflow_category_name(name for name, _ in ranked[:top_n]),
            total=other_total,
        ),
    )


def series_by_category(
    transactions: Iterable[Transaction],
    buckets: Sequence[Bucket],
    ranked: RankedCategories,
) -> List[Bucket]:
    if not buckets:
        log_unbucketed(txn for txn in transactions if txn.is_expense)
        return []
    top_names = set(ranked.names)
    other_key = ranked.other_key
    metric_names = [entry.category for entry in ranked.entries]
    results = [
        bucket.with_metrics({**bucket.metrics, **{name: ZERO for name in metric_names}})
        for bucket in buckets
    ]
    for txn in transactions:
        if not txn.is_expense:
            continue
        index = locate_bucket(results, txn.occurred_at)
        if index is None:
            log_orphan(txn, results)
            continue
        category = txn.category_label
        metric = category if category in top_names else other_key
        metrics = results[index].metrics
        metrics[metric] = metrics.get(metric, ZERO) + txn.amount
    return results


def overflow_category_name(top_names: Iterable[str]) -> str:
    # A user category may itself be called "Other"; the overflow key must stay distinct.
    taken = set(top_names)
    name = OTHER_CATEGORY
    while name in taken:
        name += OVERFLOW_SUFFIX
    return name


def category_breakdown(ranked: RankedCategories) -> List[CategoryShare]:
    entries = ranked.entries
    grand_total = sum((entry.total for entry in entries), ZERO)
    if grand_total <= ZERO:
        return []
    return [
        CategoryShare(
            category=entry.category,
            total=entry.total,
            percentage_of_total=(entry.total / grand_total) * HUNDRED,
        )
        for entry in entries
    ]
