import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from reporting.main import app

TRANSACTIONS = [
    {
        "id": "1",
        "type": "income",
        "amount": "2000",
        "date": "2024-01-05T09:00:00",
        "category": "Salary",
        "description": "January payroll",
    },
    {
        "id": "2",
        "type": "expense",
        "amount": "120.50",
        "date": "2024-01-18T12:30:00",
        "category": "Groceries",
        "description": "Weekly shop",
    },
    {
        "id": "3",
        "type": "expense",
        "amount": "900",
        "date": "2024-03-01T08:00:00",
        "category": "Rent",
    },
    {
        "id": "4",
        "type": "expense",
        "amount": "30",
        "date": "2024-03-10T20:00:00",
    },
]


class ReportsApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def test_health(self) -> None:
        with TestClient(app) as client:
            response = client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_trends_fill_empty_months(self) -> None:
        response = self.client.post("/reports/trends", json={"transactions": TRANSACTIONS})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["grain"], "month")
        self.assertEqual(
            [bucket["label"] for bucket in body["buckets"]],
            ["Jan 2024", "Feb 2024", "Mar 2024"],
        )
        self.assertEqual(body["buckets"][0]["bucket_start"], "2024-01-01")
        self.assertEqual(Decimal(str(body["buckets"][2]["metrics"]["expenses"])), Decimal("930"))

    def test_trends_apply_filters(self) -> None:
        response = self.client.post(
            "/reports/trends",
            json={
                "transactions": TRANSACTIONS,
                "start_date": "2024-01-01",
                "end_date": "2024-01-31",
                "grain": "weekly",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["grain"], "week")
        self.assertEqual(len(body["buckets"]), 3)

    def test_category_trends_report_ranking(self) -> None:
        response = self.client.post(
            "/reports/category-trends",
            json={"transactions": TRANSACTIONS, "top_n": 1},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([entry["category"] for entry in body["top_categories"]], ["Rent"])
        self.assertEqual(Decimal(str(body["other"]["total"])), Decimal("150.50"))

    def test_category_breakdown_percentages(self) -> None:
        response = self.client.post(
            "/reports/category-breakdown",
            json={"transactions": TRANSACTIONS},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(
            [entry["category"] for entry in body],
            ["Rent", "Groceries", "Uncategorized"],
        )
        total = sum(Decimal(str(entry["percentage_of_total"])) for entry in body)
        self.assertAlmostEqual(float(total), 100.0, places=6)

    def test_savings_rate(self) -> None:
        response = self.client.post("/reports/savings-rate", json={"transactions": TRANSACTIONS})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(Decimal(str(body["savings"])), Decimal("949.50"))
        self.assertEqual(Decimal(str(body["savings_rate"])), Decimal("47.475"))

    def test_trailing_trends_use_reference_date(self) -> None:
        response = self.client.post(
            "/reports/trailing-trends",
            json={"transactions": TRANSACTIONS, "reference_date": "2024-03-15", "periods": 3},
        )

        self.assertEqual(response.status_code, 200)
        labels = [bucket["label"] for bucket in response.json()["buckets"]]
        self.assertEqual(labels, ["Jan 2024", "Feb 2024", "Mar 2024"])

    def test_invalid_grain_is_rejected(self) -> None:
        response = self.client.post(
            "/reports/trends",
            json={"transactions": TRANSACTIONS, "grain": "hourly"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid grain.")

    def test_invalid_transaction_kind_is_rejected(self) -> None:
        payload = [{**TRANSACTIONS[0], "type": "transfer"}]

        response = self.client.post("/reports/trends", json={"transactions": payload})

        self.assertEqual(response.status_code, 400)

    def test_missing_date_is_rejected(self) -> None:
        payload = [{key: value for key, value in TRANSACTIONS[0].items() if key != "date"}]

        response = self.client.post("/reports/trends", json={"transactions": payload})

        self.assertEqual(response.status_code, 422)

    def test_empty_transactions_return_empty_buckets(self) -> None:
        response = self.client.post("/reports/trends", json={"transactions": []})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["buckets"], [])


if __name__ == "__main__":
    unittest.main()
