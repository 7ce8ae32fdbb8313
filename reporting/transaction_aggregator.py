from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Sequence

from reporting.bucket_generator import Bucket, locate_bucket
from reporting.logging_setup import get_logger
from reporting.transactions import Transaction

INCOME_METRIC = "income"
EXPENSES_METRIC = "expenses"
ZERO = Decimal("0")
HUNDRED = Decimal("100")

logger = get_logger(__name__)


@dataclass(frozen=True)
class SavingsSummary:
    income: Decimal
    expenses: Decimal
    savings: Decimal
    rate: Decimal


def aggregate(
    transactions: Iterable[Transaction],
    buckets: Sequence[Bucket],
) -> List[Bucket]:
    """Return copies of ``buckets`` with income and expense totals filled in."""
    if not buckets:
        log_unbucketed(transactions)
        return []
    results = [
        bucket.with_metrics({**bucket.metrics, INCOME_METRIC: ZERO, EXPENSES_METRIC: ZERO})
        for bucket in buckets
    ]
    for txn in transactions:
        index = locate_bucket(results, txn.occurred_at)
        if index is None:
            log_orphan(txn, results)
            continue
        metric = INCOME_METRIC if txn.is_income else EXPENSES_METRIC
        metrics = results[index].metrics
        metrics[metric] = metrics[metric] + txn.amount
    return results


def summarize_savings(transactions: Iterable[Transaction]) -> SavingsSummary:
    income = ZERO
    expenses = ZERO
    for txn in transactions:
        if txn.is_income:
            income += txn.amount
        else:
            expenses += txn.amount
    savings = income - expenses
    rate = (savings / income) * HUNDRED if income > ZERO else ZERO
    return SavingsSummary(income=income, expenses=expenses, savings=savings, rate=rate)


def log_orphan(txn: Transaction, buckets: Sequence[Bucket]) -> None:
    logger.error(
        "Transaction %s at %s falls outside buckets %s..%s (%s); dropped from aggregation",
        txn.id,
        txn.occurred_at.isoformat(),
        buckets[0].start.isoformat(),
        buckets[-1].start.isoformat(),
        buckets[0].grain.value,
    )


def log_unbucketed(transactions: Iterable[Transaction]) -> None:
    count = sum(1 for _ in transactions)
    if count:
        logger.error(
            "No buckets to aggregate into; %d transaction(s) dropped from aggregation",
            count,
        )
