from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from app.models.billing.invoice_models import Invoice, InvoiceItem
from app.models.enums.invoice_status import InvoiceStatus
from app.models.support.activity_models import UserActivity
from app.services.billing.overdue_service import auto_mark_overdue_invoices

TODAY = date(2026, 3, 15)


def make_invoice(number, status=InvoiceStatus.pending, due_date=None, user_id="user-123"):
    return Invoice(
        user_id=user_id,
        invoice_number=number,
        status=status,
        issue_date=TODAY - timedelta(days=30),
        due_date=due_date,
        currency="INR",
        subtotal=Decimal("100.00"),
        total=Decimal("118.00"),
        items=[
            InvoiceItem(
                position=0,
                description="Service",
                quantity=1,
                unit_price=Decimal("100.00"),
                taxable_amount=Decimal("100.00"),
                total=Decimal("100.00"),
            )
        ],
    )


async def statuses(session_factory):
    async with session_factory() as session:
        rows = await session.execute(select(Invoice.invoice_number, Invoice.status))
        return dict(rows.all())


async def test_only_pending_past_due_invoices_flip(session_factory):
    async with session_factory() as session:
        session.add_all([
            make_invoice("PAST", due_date=TODAY - timedelta(days=1)),
            make_invoice("DUE-TODAY", due_date=TODAY),
            make_invoice("FUTURE", due_date=TODAY + timedelta(days=5)),
            make_invoice("NO-DUE"),
            make_invoice("PAID-PAST", status=InvoiceStatus.paid, due_date=TODAY - timedelta(days=10)),
        ])
        await session.commit()

    async with session_factory() as session:
        count = await auto_mark_overdue_invoices(session, today=TODAY)

    assert count == 1
    assert await statuses(session_factory) == {
        "PAST": InvoiceStatus.overdue,
        "DUE-TODAY": InvoiceStatus.pending,
        "FUTURE": InvoiceStatus.pending,
        "NO-DUE": InvoiceStatus.pending,
        "PAID-PAST": InvoiceStatus.paid,
    }


async def test_each_marked_invoice_is_logged_to_its_owner(session_factory):
    async with session_factory() as session:
        session.add_all([
            make_invoice("A-1", due_date=TODAY - timedelta(days=3), user_id="user-a"),
            make_invoice("B-1", due_date=TODAY - timedelta(days=3), user_id="user-b"),
        ])
        await session.commit()

    async with session_factory() as session:
        await auto_mark_overdue_invoices(session, today=TODAY)

    async with session_factory() as session:
        activities = (await session.execute(select(UserActivity).order_by(UserActivity.user_id))).scalars().all()

    assert [a.user_id for a in activities] == ["user-a", "user-b"]
    assert all(a.username_snapshot == "system" for a in activities)
    assert activities[0].message == "Invoice A-1 marked overdue automatically on 2026-03-15"


async def test_second_run_is_a_no_op(session_factory):
    async with session_factory() as session:
        session.add(make_invoice("PAST", due_date=TODAY - timedelta(days=1)))
        await session.commit()

    async with session_factory() as session:
        assert await auto_mark_overdue_invoices(session, today=TODAY) == 1
    async with session_factory() as session:
        assert await auto_mark_overdue_invoices(session, today=TODAY) == 0
