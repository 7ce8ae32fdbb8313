import unittest
from datetime import date, datetime, timedelta
from decimal import Decimal

from reporting.time_grain import (
    TimeGrain,
    add_one_grain_unit,
    align_to_grain_start,
    format_bucket_label,
    grain_units_between,
    normalize_grain,
    select_grain,
)
from reporting.transactions import Transaction


def _expense(occurred_at: datetime) -> Transaction:
    return Transaction(
        id=occurred_at.isoformat(),
        kind="expense",
        amount=Decimal("1"),
        occurred_at=occurred_at,
    )


class SelectGrainTests(unittest.TestCase):
    def test_span_of_35_days_is_daily(self) -> None:
        start = datetime(2024, 1, 1)
        transactions = [_expense(start), _expense(start + timedelta(days=35))]

        self.assertEqual(select_grain(transactions), TimeGrain.DAY)

    def test_span_of_36_days_is_monthly(self) -> None:
        start = datetime(2024, 1, 1)
        transactions = [_expense(start), _expense(start + timedelta(days=36))]

        self.assertEqual(select_grain(transactions), TimeGrain.MONTH)

    def test_partial_days_do_not_count_toward_span(self) -> None:
        start = datetime(2024, 1, 1, 23, 0)
        transactions = [_expense(start), _expense(datetime(2024, 2, 6, 1, 0))]

        self.assertEqual(select_grain(transactions), TimeGrain.DAY)

    def test_explicit_grain_wins(self) -> None:
        start = datetime(2024, 1, 1)
        transactions = [_expense(start), _expense(start + timedelta(days=400))]

        self.assertEqual(select_grain(transactions, TimeGrain.WEEK), TimeGrain.WEEK)
        self.assertEqual(select_grain(transactions, "yearly"), TimeGrain.YEAR)
        self.assertEqual(select_grain([], "day"), TimeGrain.DAY)

    def test_empty_input_without_explicit_grain_raises(self) -> None:
        with self.assertRaises(ValueError):
            select_grain([])

    def test_unknown_grain_raises(self) -> None:
        with self.assertRaises(ValueError):
            normalize_grain("fortnightly")


class GrainArithmeticTests(unittest.TestCase):
    def test_align_to_grain_start(self) -> None:
        value = datetime(2024, 5, 16, 18, 45)

        self.assertEqual(align_to_grain_start(value, TimeGrain.DAY), date(2024, 5, 16))
        self.assertEqual(align_to_grain_start(value, TimeGrain.WEEK), date(2024, 5, 13))
        self.assertEqual(align_to_grain_start(value, TimeGrain.MONTH), date(2024, 5, 1))
        self.assertEqual(align_to_grain_start(value, TimeGrain.YEAR), date(2024, 1, 1))

    def test_week_starts_on_monday_across_year_boundary(self) -> None:
        self.assertEqual(
            align_to_grain_start(date(2025, 1, 1), TimeGrain.WEEK),
            date(2024, 12, 30),
        )

    def test_add_one_grain_unit_rolls_over(self) -> None:
        self.assertEqual(add_one_grain_unit(date(2024, 2, 29), TimeGrain.DAY), date(2024, 3, 1))
        self.assertEqual(add_one_grain_unit(date(2024, 12, 30), TimeGrain.WEEK), date(2025, 1, 6))
        self.assertEqual(add_one_grain_unit(date(2024, 12, 1), TimeGrain.MONTH), date(2025, 1, 1))
        self.assertEqual(add_one_grain_unit(date(2024, 1, 1), TimeGrain.YEAR), date(2025, 1, 1))

    def test_grain_units_between(self) -> None:
        self.assertEqual(
            grain_units_between(date(2023, 11, 1), date(2024, 2, 1), TimeGrain.MONTH),
            3,
        )
        self.assertEqual(
            grain_units_between(date(2024, 1, 1), date(2024, 1, 29), TimeGrain.WEEK),
            4,
        )

    def test_labels(self) -> None:
        self.assertEqual(format_bucket_label(date(2025, 1, 12), TimeGrain.DAY), "12 Jan")
        self.assertEqual(format_bucket_label(date(2025, 1, 13), TimeGrain.WEEK), "W3 Jan")
        self.assertEqual(format_bucket_label(date(2024, 12, 30), TimeGrain.WEEK), "W1 Jan")
        self.assertEqual(format_bucket_label(date(2024, 4, 29), TimeGrain.WEEK), "W18 May")
        self.assertEqual(format_bucket_label(date(2025, 1, 1), TimeGrain.MONTH), "Jan 2025")
        self.assertEqual(format_bucket_label(date(2025, 1, 1), TimeGrain.YEAR), "2025")


if __name__ == "__main__":
    unittest.main()
