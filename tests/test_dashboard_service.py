from datetime import datetime, timezone
from decimal import Decimal

from app.models.enums.invoice_status import InvoiceStatus
from app.services.billing.dashboard_service import (
    InvoiceFigure,
    compute_history,
    compute_monthly_earnings,
    compute_stats,
    growth_percent,
    most_used_currency,
)

PAID = InvoiceStatus.paid
PENDING = InvoiceStatus.pending
OVERDUE = InvoiceStatus.overdue


def fig(total, status, year, month, day=10, currency="INR"):
    return InvoiceFigure(
        total=Decimal(total),
        status=status,
        created_at=datetime(year, month, day, tzinfo=timezone.utc),
        currency=currency,
    )


def test_growth_is_zero_without_a_base():
    assert growth_percent(Decimal("500"), Decimal("0")) == 0
    assert growth_percent(Decimal("150"), Decimal("100")) == Decimal("50.0")
    assert growth_percent(Decimal("100"), Decimal("300")) == Decimal("-66.7")


def test_stats_count_paid_earnings_only():
    figures = [
        fig("1000", PAID, 2026, 3),
        fig("500", PAID, 2026, 2),
        fig("700", PENDING, 2026, 3),
        fig("300", OVERDUE, 2026, 1),
    ]

    stats = compute_stats(figures, now=datetime(2026, 3, 20, tzinfo=timezone.utc))

    assert stats.total_earnings == Decimal("1500")
    assert stats.total_invoices == 4
    assert stats.pending_invoices == 1
    assert stats.monthly_growth == Decimal("100.0")


def test_stats_in_january_compare_with_december():
    figures = [fig("200", PAID, 2025, 12), fig("100", PAID, 2026, 1)]

    stats = compute_stats(figures, now=datetime(2026, 1, 5, tzinfo=timezone.utc))

    assert stats.monthly_growth == Decimal("-50.0")


def test_stats_accept_naive_timestamps():
    naive = InvoiceFigure(total=Decimal("10"), status=PAID, created_at=datetime(2026, 3, 1))

    stats = compute_stats([naive], now=datetime(2026, 3, 2, tzinfo=timezone.utc))

    assert stats.total_earnings == Decimal("10")


def test_monthly_earnings_cover_every_month():
    figures = [
        fig("100", PAID, 2026, 1),
        fig("50", PAID, 2026, 1, day=20),
        fig("999", PENDING, 2026, 4),
        fig("70", PAID, 2025, 4),
    ]

    months = compute_monthly_earnings(figures, 2026)

    assert [m.month for m in months][:3] == ["Jan", "Feb", "Mar"]
    assert len(months) == 12
    assert months[0].earnings == Decimal("150")
    assert months[3].earnings == 0


def test_most_used_currency():
    assert most_used_currency([]) == "USD"
    assert most_used_currency([
        fig("1", PAID, 2026, 1, currency="EUR"),
        fig("1", PAID, 2026, 1, currency="INR"),
        fig("1", PAID, 2026, 1, currency="INR"),
    ]) == "INR"


def test_history_growth_skips_months_without_paid_earnings():
    figures = [
        fig("100", PAID, 2026, 1),
        fig("40", PENDING, 2026, 2),
        fig("150", PAID, 2026, 3),
        fig("60", OVERDUE, 2026, 3),
    ]

    history = compute_history(figures, 2026)
    jan, feb, mar = history.months[:3]

    assert history.currency == "INR"
    assert jan.growth == 0
    assert feb.paid_earnings == 0
    assert feb.pending_invoices == 1
    assert mar.growth == Decimal("50.0")
    assert mar.total_earnings == Decimal("210")
    assert mar.overdue_invoices == 1
    assert mar.average_invoice_value == Decimal("105")
