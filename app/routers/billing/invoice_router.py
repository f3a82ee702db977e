from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import SessionUser
from app.models.enums.invoice_status import InvoiceStatus
from app.utils.response import APIResponse, success_response
from app.schemas.billing.invoice_schemas import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceOut,
    InvoiceListData,
    InvoiceStatusChange,
    InvoiceEmailRequest,
    PreviewRequest,
    PreviewOut,
)
from app.services.billing.invoice_service import (
    create_invoice,
    list_invoices,
    get_invoice,
    update_invoice,
    change_invoice_status,
    delete_invoice,
    preview_totals,
)
from app.services.billing.invoice_delivery_service import build_invoice_pdf, email_invoice
from app.services.notifications.email_service import EmailSender, get_email_sender
from app.services.subscriptions.subscription_service import require_active_subscription
from app.utils.get_user import get_current_user
from app.utils.logger import get_logger

router = APIRouter(prefix="/invoices", tags=["Invoices"])
logger = get_logger(__name__)


@router.post("/preview-totals", response_model=APIResponse[PreviewOut])
async def preview_totals_api(
    payload: PreviewRequest,
    user: SessionUser = Depends(get_current_user),
):
    return success_response("Totals computed", preview_totals(payload))


@router.post("/", response_model=APIResponse[InvoiceOut])
async def create_invoice_api(
    payload: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info("Create invoice", extra={"user_id": user.id, "item_count": len(payload.items)})
    invoice = await create_invoice(db, payload, user)
    return success_response("Invoice created successfully", invoice)


@router.get("/", response_model=APIResponse[InvoiceListData])
async def list_invoices_api(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
    status: Optional[InvoiceStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    logger.info(
        "List invoices",
        extra={"user_id": user.id, "status": status, "page": page, "page_size": page_size},
    )
    data = await list_invoices(db, user, status=status, page=page, page_size=page_size)
    return success_response("Invoices fetched successfully", data)


@router.get("/{invoice_id}", response_model=APIResponse[InvoiceOut])
async def get_invoice_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    invoice = await get_invoice(db, invoice_id, user)
    return success_response("Invoice fetched successfully", invoice)


@router.put("/{invoice_id}", response_model=APIResponse[InvoiceOut])
async def update_invoice_api(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info("Update invoice", extra={"invoice_id": invoice_id, "user_id": user.id})
    invoice = await update_invoice(db, invoice_id, payload, user)
    return success_response("Invoice updated successfully", invoice)


@router.patch("/{invoice_id}/status", response_model=APIResponse[InvoiceOut])
async def change_invoice_status_api(
    invoice_id: int,
    payload: InvoiceStatusChange,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info(
        "Change invoice status",
        extra={"invoice_id": invoice_id, "new_status": payload.status.value},
    )
    invoice = await change_invoice_status(db, invoice_id, payload.status, user)
    return success_response("Invoice status updated", invoice)


@router.delete("/{invoice_id}", response_model=APIResponse[None])
async def delete_invoice_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info("Delete invoice", extra={"invoice_id": invoice_id, "user_id": user.id})
    await delete_invoice(db, invoice_id, user)
    return success_response("Invoice deleted successfully")


@router.get("/{invoice_id}/pdf")
async def invoice_pdf_api(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    filename, content = await build_invoice_pdf(db, invoice_id, user)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{invoice_id}/email", response_model=APIResponse[dict])
async def email_invoice_api(
    invoice_id: int,
    payload: InvoiceEmailRequest,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
    sender: EmailSender = Depends(get_email_sender),
):
    logger.info("Email invoice", extra={"invoice_id": invoice_id, "user_id": user.id})
    message_id = await email_invoice(db, invoice_id, payload, user, sender)
    return success_response("Invoice sent successfully", {"message_id": message_id})
