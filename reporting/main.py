import os
from datetime import date, datetime
from decimal import Decimal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from reporting.bucket_generator import Bucket
from reporting.category_ranker import (
    DEFAULT_TOP_N,
    CategoryTotal,
    category_breakdown as build_category_breakdown,
    rank_categories,
)
from reporting.logging_setup import configure_logging, get_logger
from reporting.time_grain import normalize_grain
from reporting.transaction_aggregator import summarize_savings
from reporting.transactions import Transaction, filter_transactions
from reporting.trend_report import (
    DEFAULT_TRAILING_PERIODS,
    TrendReport,
    build_category_trend_report,
    build_trailing_trend_report,
    build_trend_report,
)

logger = get_logger(__name__)

app = FastAPI()

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_default_top_n() -> int:
    raw = os.getenv("REPORT_TOP_CATEGORIES", str(DEFAULT_TOP_N))
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_TOP_N
    return value if value >= 1 else DEFAULT_TOP_N


DEFAULT_REPORT_TOP_N = get_default_top_n()


@app.on_event("startup")
def init_logging() -> None:
    configure_logging()


class TransactionPayload(BaseModel):
    id: str
    type: str
    amount: Decimal
    date: datetime
    category: str | None = None
    description: str | None = None

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id,
            kind=self.type,
            amount=self.amount,
            occurred_at=self.date,
            category=self.category,
            description=self.description,
        )


class ReportPayload(BaseModel):
    transactions: list[TransactionPayload]
    start_date: date | None = None
    end_date: date | None = None
    categories: list[str] | None = None
    search: str | None = None


class TrendPayload(ReportPayload):
    grain: str | None = None


class CategoryTrendPayload(TrendPayload):
    top_n: int | None = None


class CategoryBreakdownPayload(ReportPayload):
    top_n: int | None = None


class TrailingTrendPayload(ReportPayload):
    reference_date: date
    grain: str = "monthly"
    periods: int = DEFAULT_TRAILING_PERIODS


class BucketResponse(BaseModel):
    bucket_start: date
    label: str
    metrics: dict[str, Decimal]


class CategoryTotalResponse(BaseModel):
    category: str
    total: Decimal


class TrendResponse(BaseModel):
    grain: str
    buckets: list[BucketResponse]


class CategoryTrendResponse(TrendResponse):
    top_categories: list[CategoryTotalResponse]
    other: CategoryTotalResponse | None = None


class CategoryBreakdownResponse(BaseModel):
    category: str
    total_spent: Decimal
    percentage_of_total: Decimal


class SavingsRateResponse(BaseModel):
    total_income: Decimal
    total_expenses: Decimal
    savings: Decimal
    savings_rate: Decimal


def load_transactions(payload: ReportPayload) -> list[Transaction]:
    try:
        parsed = [item.to_transaction() for item in payload.transactions]
        return filter_transactions(
            parsed,
            start_date=payload.start_date,
            end_date=payload.end_date,
            categories=payload.categories,
            search=payload.search,
        )
    except ValueError as exc:
        logger.warning("Rejected report payload: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def bucket_response(bucket: Bucket) -> BucketResponse:
    return BucketResponse(
        bucket_start=bucket.start,
        label=bucket.label,
        metrics=dict(bucket.metrics),
    )


def category_total_response(entry: CategoryTotal) -> CategoryTotalResponse:
    return CategoryTotalResponse(category=entry.category, total=entry.total)


def trend_response(report: TrendReport) -> TrendResponse:
    return TrendResponse(
        grain=report.grain.value,
        buckets=[bucket_response(bucket) for bucket in report.buckets],
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/reports/trends", response_model=TrendResponse)
def trends(payload: TrendPayload) -> TrendResponse:
    transactions = load_transactions(payload)
    try:
        report = build_trend_report(transactions, grain=payload.grain)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return trend_response(report)


@app.post(
    "/reports/category-trends",
    response_model=CategoryTrendResponse,
    response_model_exclude_none=True,
)
def category_trends(payload: CategoryTrendPayload) -> CategoryTrendResponse:
    transactions = load_transactions(payload)
    top_n = payload.top_n if payload.top_n is not None else DEFAULT_REPORT_TOP_N
    try:
        report = build_category_trend_report(transactions, grain=payload.grain, top_n=top_n)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    ranked = report.ranked
    return CategoryTrendResponse(
        grain=report.grain.value,
        buckets=[bucket_response(bucket) for bucket in report.buckets],
        top_categories=[category_total_response(entry) for entry in ranked.top],
        other=category_total_response(ranked.other) if ranked.other else None,
    )


@app.post("/reports/category-breakdown", response_model=list[CategoryBreakdownResponse])
def category_breakdown(payload: CategoryBreakdownPayload) -> list[CategoryBreakdownResponse]:
    transactions = load_transactions(payload)
    top_n = payload.top_n if payload.top_n is not None else DEFAULT_REPORT_TOP_N
    try:
        ranked = rank_categories(transactions, top_n)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [
        CategoryBreakdownResponse(
            category=share.category,
            total_spent=share.total,
            percentage_of_total=share.percentage_of_total,
        )
        for share in build_category_breakdown(ranked)
    ]


@app.post("/reports/savings-rate", response_model=SavingsRateResponse)
def savings_rate(payload: ReportPayload) -> SavingsRateResponse:
    summary = summarize_savings(load_transactions(payload))
    return SavingsRateResponse(
        total_income=summary.income,
        total_expenses=summary.expenses,
        savings=summary.savings,
        savings_rate=summary.rate,
    )


@app.post("/reports/trailing-trends", response_model=TrendResponse)
def trailing_trends(payload: TrailingTrendPayload) -> TrendResponse:
    transactions = load_transactions(payload)
    try:
        grain = normalize_grain(payload.grain)
        report = build_trailing_trend_report(
            transactions,
            reference_date=payload.reference_date,
            grain=grain,
            periods=payload.periods,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return trend_response(report)
