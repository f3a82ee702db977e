import time
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.billing.invoice_models import Invoice, InvoiceItem
from app.models.enums.invoice_status import InvoiceStatus
from app.schemas.billing.invoice_schemas import (
    InvoiceBase,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceOut,
    InvoiceItemOut,
    InvoiceListData,
    InvoiceListItem,
    PreviewRequest,
    PreviewItemOut,
    PreviewOut,
)
from app.services.billing.tax_engine import (
    TaxRates,
    compute_item,
    compute_invoice_totals,
    to_amount,
)
from app.services.masters.client_service import get_owned_client
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode, Guidance
from app.core.exceptions import AppException, failure_details
from app.core.security import SessionUser
from app.utils.activity_helpers import emit_activity
from app.utils.currency import format_currency
from app.utils.decimal_utils import to_decimal
from app.utils.upi_qr import generate_upi_qr
from app.utils.logger import get_logger

logger = get_logger(__name__)

# target status -> statuses it may be reached from
ALLOWED_TRANSITIONS = {
    InvoiceStatus.paid: {InvoiceStatus.pending, InvoiceStatus.overdue},
    InvoiceStatus.overdue: {InvoiceStatus.pending, InvoiceStatus.paid},
    InvoiceStatus.pending: {InvoiceStatus.overdue},
}


def default_invoice_number() -> str:
    return f"INV-{str(int(time.time() * 1000))[-6:]}"


# =====================================================
# INTERNAL HELPERS
# =====================================================
async def _get_owned_invoice(db: AsyncSession, invoice_id: int, user: SessionUser) -> Invoice:
    result = await db.execute(
        select(Invoice)
        .options(selectinload(Invoice.items))
        .where(
            Invoice.id == invoice_id,
            Invoice.user_id == user.id,
        )
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise AppException(404, "Invoice not found", ErrorCode.INVOICE_NOT_FOUND)
    return invoice


def _build_items(payload: InvoiceBase) -> list[InvoiceItem]:
    items: list[InvoiceItem] = []

    for position, item in enumerate(payload.items):
        rates = TaxRates(
            cgst_rate=item.cgst_rate if item.cgst_rate is not None else payload.cgst_rate,
            sgst_rate=item.sgst_rate if item.sgst_rate is not None else payload.sgst_rate,
            igst_rate=item.igst_rate if item.igst_rate is not None else payload.igst_rate,
        )
        breakdown = compute_item(item.quantity, item.unit_price, payload.gst_type, rates)

        items.append(
            InvoiceItem(
                position=position,
                description=item.description,
                hsn_sac_code=item.hsn_sac_code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                cgst_rate=rates.cgst_rate,
                sgst_rate=rates.sgst_rate,
                igst_rate=rates.igst_rate,
                cgst_amount=to_decimal(breakdown.cgst_amount),
                sgst_amount=to_decimal(breakdown.sgst_amount),
                igst_amount=to_decimal(breakdown.igst_amount),
                taxable_amount=to_decimal(breakdown.taxable_amount),
                total=to_decimal(breakdown.total),
            )
        )

    return items


# largest magnitude a Numeric(14, 2) column holds
MAX_STORED_AMOUNT = Decimal("1e12")


def _apply_totals(invoice: Invoice, items: list[InvoiceItem]) -> None:
    totals = compute_invoice_totals(items, invoice.discount_amount)

    if max(abs(totals.subtotal), abs(totals.tax_amount), abs(totals.total)) >= MAX_STORED_AMOUNT:
        raise AppException(
            422,
            "Invoice amounts are too large to store",
            ErrorCode.VALIDATION_ERROR,
            failure_details(Guidance.FIX_DETAILS, subtotal=str(totals.subtotal)),
        )

    invoice.subtotal = to_decimal(totals.subtotal)
    invoice.cgst_amount = to_decimal(totals.total_cgst)
    invoice.sgst_amount = to_decimal(totals.total_sgst)
    invoice.igst_amount = to_decimal(totals.total_igst)
    invoice.tax_amount = to_decimal(totals.tax_amount)
    invoice.total = to_decimal(totals.total)


async def _apply_header(
    db: AsyncSession,
    invoice: Invoice,
    payload: InvoiceBase,
    user: SessionUser,
) -> None:
    invoice.issue_date = payload.issue_date or invoice.issue_date or date.today()
    invoice.due_date = payload.due_date
    invoice.currency = payload.currency.upper()

    invoice.client_id = payload.client_id
    if payload.client_id is not None:
        client = await get_owned_client(db, payload.client_id, user)
        invoice.client_name = client.name
        invoice.client_email = client.email
        invoice.client_phone = client.phone
        invoice.client_address = client.address
        invoice.client_gstin = client.gstin
    else:
        invoice.client_name = payload.client_name
        invoice.client_email = payload.client_email
        invoice.client_phone = payload.client_phone
        invoice.client_address = payload.client_address
        invoice.client_gstin = payload.client_gstin

    invoice.company_gstin = payload.company_gstin
    invoice.place_of_supply = payload.place_of_supply

    invoice.gst_type = payload.gst_type
    invoice.cgst_rate = payload.cgst_rate
    invoice.sgst_rate = payload.sgst_rate
    invoice.igst_rate = payload.igst_rate
    invoice.discount_amount = to_decimal(payload.discount_amount)
    invoice.notes = payload.notes

    invoice.upi_id = payload.upi_id.strip() if payload.upi_id else None
    invoice.payment_amount = (
        to_decimal(payload.payment_amount) if payload.payment_amount is not None else None
    )
    invoice.payment_qr = generate_upi_qr(invoice.upi_id, invoice.payment_amount)


def item_display_total(item: InvoiceItem) -> Decimal:
    return item.taxable_amount + item.cgst_amount + item.sgst_amount + item.igst_amount


def _map_item(item: InvoiceItem) -> InvoiceItemOut:
    return InvoiceItemOut(
        id=item.id,
        position=item.position,
        description=item.description,
        hsn_sac_code=item.hsn_sac_code,
        quantity=item.quantity,
        unit_price=item.unit_price,
        cgst_rate=item.cgst_rate,
        sgst_rate=item.sgst_rate,
        igst_rate=item.igst_rate,
        cgst_amount=item.cgst_amount,
        sgst_amount=item.sgst_amount,
        igst_amount=item.igst_amount,
        taxable_amount=item.taxable_amount,
        total=item.total,
        display_total=item_display_total(item),
    )


def _map_invoice(invoice: Invoice) -> InvoiceOut:
    return InvoiceOut(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        client_id=invoice.client_id,
        status=invoice.status,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        currency=invoice.currency,
        client_name=invoice.client_name,
        client_email=invoice.client_email,
        client_phone=invoice.client_phone,
        client_address=invoice.client_address,
        client_gstin=invoice.client_gstin,
        company_gstin=invoice.company_gstin,
        place_of_supply=invoice.place_of_supply,
        gst_type=invoice.gst_type,
        cgst_rate=invoice.cgst_rate,
        sgst_rate=invoice.sgst_rate,
        igst_rate=invoice.igst_rate,
        subtotal=invoice.subtotal,
        cgst_amount=invoice.cgst_amount,
        sgst_amount=invoice.sgst_amount,
        igst_amount=invoice.igst_amount,
        tax_amount=invoice.tax_amount,
        discount_amount=invoice.discount_amount,
        total=invoice.total,
        notes=invoice.notes,
        upi_id=invoice.upi_id,
        payment_amount=invoice.payment_amount,
        payment_qr=invoice.payment_qr,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
        items=[_map_item(i) for i in invoice.items],
    )


async def _flush_or_conflict(db: AsyncSession, invoice_number: str) -> None:
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(
            409,
            f"Invoice number {invoice_number} already exists",
            ErrorCode.INVOICE_NUMBER_EXISTS,
        )


# =====================================================
# CREATE
# =====================================================
async def create_invoice(db: AsyncSession, payload: InvoiceCreate, user: SessionUser) -> InvoiceOut:
    invoice = Invoice(
        user_id=user.id,
        invoice_number=(payload.invoice_number or "").strip() or default_invoice_number(),
        status=InvoiceStatus.pending,
    )
    await _apply_header(db, invoice, payload, user)

    items = _build_items(payload)
    invoice.items = items
    _apply_totals(invoice, items)

    db.add(invoice)
    await _flush_or_conflict(db, invoice.invoice_number)

    await emit_activity(
        db,
        ActivityCode.CREATE_INVOICE,
        actor=user,
        target_name=invoice.invoice_number,
        amount=format_currency(invoice.total, invoice.currency),
    )

    await db.commit()
    logger.info(
        "Invoice created",
        extra={"invoice_id": invoice.id, "user_id": user.id, "total": str(invoice.total)},
    )

    return _map_invoice(await _get_owned_invoice(db, invoice.id, user))


# =====================================================
# LIST
# =====================================================
async def list_invoices(
    db: AsyncSession,
    user: SessionUser,
    *,
    status: Optional[InvoiceStatus] = None,
    page: int = 1,
    page_size: int = 20,
) -> InvoiceListData:
    conditions = [Invoice.user_id == user.id]
    if status is not None:
        conditions.append(Invoice.status == status)

    total = await db.scalar(select(func.count(Invoice.id)).where(*conditions))

    result = await db.execute(
        select(
            Invoice.id,
            Invoice.invoice_number,
            Invoice.client_name,
            Invoice.issue_date,
            Invoice.due_date,
            Invoice.currency,
            Invoice.total,
            Invoice.status,
        )
        .where(*conditions)
        .order_by(desc(Invoice.created_at), desc(Invoice.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    items = [
        InvoiceListItem(
            id=r.id,
            invoice_number=r.invoice_number,
            client_name=r.client_name,
            issue_date=r.issue_date,
            due_date=r.due_date,
            currency=r.currency,
            total=r.total,
            status=r.status,
        )
        for r in result.all()
    ]

    return InvoiceListData(total=total or 0, items=items)


# =====================================================
# GET
# =====================================================
async def get_invoice(db: AsyncSession, invoice_id: int, user: SessionUser) -> InvoiceOut:
    return _map_invoice(await _get_owned_invoice(db, invoice_id, user))


async def get_invoice_entity(db: AsyncSession, invoice_id: int, user: SessionUser) -> Invoice:
    return await _get_owned_invoice(db, invoice_id, user)


# =====================================================
# UPDATE (items replaced wholesale)
# =====================================================
async def update_invoice(
    db: AsyncSession,
    invoice_id: int,
    payload: InvoiceUpdate,
    user: SessionUser,
) -> InvoiceOut:
    invoice = await _get_owned_invoice(db, invoice_id, user)

    if payload.invoice_number and payload.invoice_number.strip():
        invoice.invoice_number = payload.invoice_number.strip()
    await _apply_header(db, invoice, payload, user)

    invoice.items.clear()
    await db.flush()

    items = _build_items(payload)
    invoice.items.extend(items)
    _apply_totals(invoice, items)

    await _flush_or_conflict(db, invoice.invoice_number)

    await emit_activity(
        db,
        ActivityCode.UPDATE_INVOICE,
        actor=user,
        target_name=invoice.invoice_number,
        item_count=len(items),
        amount=format_currency(invoice.total, invoice.currency),
    )

    await db.commit()
    return _map_invoice(await _get_owned_invoice(db, invoice_id, user))


# =====================================================
# STATUS
# =====================================================
async def change_invoice_status(
    db: AsyncSession,
    invoice_id: int,
    new_status: InvoiceStatus,
    user: SessionUser,
) -> InvoiceOut:
    invoice = await _get_owned_invoice(db, invoice_id, user)
    old_status = invoice.status

    if old_status not in ALLOWED_TRANSITIONS.get(new_status, set()):
        raise AppException(
            400,
            f"Cannot change invoice status from {old_status.value} to {new_status.value}",
            ErrorCode.INVOICE_INVALID_STATE,
        )

    invoice.status = new_status

    await emit_activity(
        db,
        ActivityCode.CHANGE_INVOICE_STATUS,
        actor=user,
        target_name=invoice.invoice_number,
        old_value=old_status.value,
        new_value=new_status.value,
    )

    await db.commit()
    return _map_invoice(await _get_owned_invoice(db, invoice_id, user))


# =====================================================
# DELETE
# =====================================================
async def delete_invoice(db: AsyncSession, invoice_id: int, user: SessionUser) -> None:
    invoice = await _get_owned_invoice(db, invoice_id, user)
    number = invoice.invoice_number

    await db.delete(invoice)

    await emit_activity(
        db,
        ActivityCode.DELETE_INVOICE,
        actor=user,
        target_name=number,
    )

    await db.commit()
    logger.info("Invoice deleted", extra={"invoice_id": invoice_id, "user_id": user.id})


# =====================================================
# PREVIEW
# =====================================================
def preview_totals(payload: PreviewRequest) -> PreviewOut:
    """Recompute an unsaved invoice. Never raises on bad numbers."""
    breakdowns = []
    for item in payload.items:
        rates = TaxRates(
            cgst_rate=to_amount(item.cgst_rate if item.cgst_rate is not None else payload.cgst_rate),
            sgst_rate=to_amount(item.sgst_rate if item.sgst_rate is not None else payload.sgst_rate),
            igst_rate=to_amount(item.igst_rate if item.igst_rate is not None else payload.igst_rate),
        )
        breakdowns.append(compute_item(item.quantity, item.unit_price, payload.gst_type, rates))

    totals = compute_invoice_totals(breakdowns, payload.discount_amount)

    return PreviewOut(
        items=[
            PreviewItemOut(
                taxable_amount=b.taxable_amount,
                cgst_amount=b.cgst_amount,
                sgst_amount=b.sgst_amount,
                igst_amount=b.igst_amount,
                total=b.total,
                display_total=b.display_total,
            )
            for b in breakdowns
        ],
        subtotal=totals.subtotal,
        total_cgst=totals.total_cgst,
        total_sgst=totals.total_sgst,
        total_igst=totals.total_igst,
        tax_amount=totals.tax_amount,
        discount_amount=totals.discount_amount,
        total=totals.total,
        formatted_total=format_currency(totals.total, str(payload.currency or "INR")),
    )
