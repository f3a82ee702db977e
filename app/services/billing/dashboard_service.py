"""
Earnings statistics over a user's invoices.

Aggregation runs in Python over a narrow column projection so the same code
serves PostgreSQL and SQLite. Earnings count ``paid`` invoices only; growth is
a percentage rounded to one decimal and is 0 when there is no base to compare.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from collections import Counter
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.billing.invoice_models import Invoice
from app.models.enums.invoice_status import InvoiceStatus
from app.schemas.billing.dashboard_schemas import (
    DashboardStats,
    MonthlyEarnings,
    MonthlyHistory,
    HistoryData,
)
from app.core.security import SessionUser

ZERO = Decimal("0")
ONE_DECIMAL = Decimal("0.1")
DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class InvoiceFigure:
    total: Decimal
    status: InvoiceStatus
    created_at: datetime
    currency: Optional[str] = None


def _utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


def growth_percent(current: Decimal, previous: Decimal) -> Decimal:
    if previous <= 0:
        return ZERO
    return ((current - previous) / previous * 100).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _previous_month(year: int, month: int) -> tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


# =========================
# PURE AGGREGATES
# =========================
def compute_stats(figures: Iterable[InvoiceFigure], now: datetime) -> DashboardStats:
    figures = list(figures)
    now = _utc(now)

    current_start = _month_start(now.year, now.month)
    last_start = _month_start(*_previous_month(now.year, now.month))

    paid = [f for f in figures if f.status == InvoiceStatus.paid]
    current = sum((f.total for f in paid if _utc(f.created_at) >= current_start), ZERO)
    last = sum(
        (f.total for f in paid if last_start <= _utc(f.created_at) < current_start),
        ZERO,
    )

    return DashboardStats(
        total_earnings=sum((f.total for f in paid), ZERO),
        total_invoices=len(figures),
        pending_invoices=sum(1 for f in figures if f.status == InvoiceStatus.pending),
        monthly_growth=growth_percent(current, last),
    )


def compute_monthly_earnings(figures: Iterable[InvoiceFigure], year: int) -> list[MonthlyEarnings]:
    buckets = [ZERO] * 12
    for f in figures:
        created = _utc(f.created_at)
        if created.year == year and f.status == InvoiceStatus.paid:
            buckets[created.month - 1] += f.total

    return [
        MonthlyEarnings(month=calendar.month_abbr[i + 1], earnings=amount)
        for i, amount in enumerate(buckets)
    ]


def most_used_currency(figures: Iterable[InvoiceFigure]) -> str:
    counts = Counter(f.currency or DEFAULT_CURRENCY for f in figures)
    if not counts:
        return DEFAULT_CURRENCY
    # first seen wins on ties
    return counts.most_common(1)[0][0]


def compute_history(figures: Iterable[InvoiceFigure], year: int) -> HistoryData:
    figures = [f for f in figures if _utc(f.created_at).year == year]

    months = []
    for month in range(1, 13):
        rows = [f for f in figures if _utc(f.created_at).month == month]
        total_earnings = sum((f.total for f in rows), ZERO)
        paid_rows = [f for f in rows if f.status == InvoiceStatus.paid]

        months.append({
            "month": calendar.month_name[month],
            "year": year,
            "total_earnings": total_earnings,
            "paid_earnings": sum((f.total for f in paid_rows), ZERO),
            "total_invoices": len(rows),
            "paid_invoices": len(paid_rows),
            "pending_invoices": sum(1 for f in rows if f.status == InvoiceStatus.pending),
            "overdue_invoices": sum(1 for f in rows if f.status == InvoiceStatus.overdue),
            "average_invoice_value": total_earnings / len(rows) if rows else ZERO,
        })

    # growth compares against the most recent month that had paid earnings
    history = []
    previous_paid = ZERO
    for data in months:
        history.append(MonthlyHistory(**data, growth=growth_percent(data["paid_earnings"], previous_paid)))
        if data["paid_earnings"] > 0:
            previous_paid = data["paid_earnings"]

    return HistoryData(year=year, currency=most_used_currency(figures), months=history)


# =========================
# QUERIES
# =========================
async def _load_figures(
    db: AsyncSession,
    user: SessionUser,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> list[InvoiceFigure]:
    query = select(
        Invoice.total,
        Invoice.status,
        Invoice.created_at,
        Invoice.currency,
    ).where(Invoice.user_id == user.id)

    if since is not None:
        query = query.where(Invoice.created_at >= since)
    if until is not None:
        query = query.where(Invoice.created_at < until)

    result = await db.execute(query.order_by(Invoice.created_at))
    return [
        InvoiceFigure(
            total=r.total if r.total is not None else ZERO,
            status=r.status,
            created_at=r.created_at,
            currency=r.currency,
        )
        for r in result.all()
    ]


async def get_dashboard_stats(db: AsyncSession, user: SessionUser, now: datetime | None = None) -> DashboardStats:
    return compute_stats(await _load_figures(db, user), now or datetime.now(timezone.utc))


async def get_monthly_earnings(db: AsyncSession, user: SessionUser, year: int) -> list[MonthlyEarnings]:
    figures = await _load_figures(db, user, _month_start(year, 1), _month_start(year + 1, 1))
    return compute_monthly_earnings(figures, year)


async def get_history(db: AsyncSession, user: SessionUser, year: int) -> HistoryData:
    figures = await _load_figures(db, user, _month_start(year, 1), _month_start(year + 1, 1))
    return compute_history(figures, year)
