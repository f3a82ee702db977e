from xml.sax.saxutils import escape

from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.activity_codes import ActivityCode
from app.core.security import SessionUser
from app.schemas.billing.invoice_schemas import InvoiceEmailRequest
from app.services.billing.invoice_service import get_invoice_entity
from app.services.notifications.email_service import EmailAttachment, EmailSender
from app.utils.activity_helpers import emit_activity
from app.utils.currency import format_currency
from app.utils.pdf_generators.invoice_pdf import render_invoice_pdf, invoice_pdf_filename
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def build_invoice_pdf(db: AsyncSession, invoice_id: int, user: SessionUser) -> tuple[str, bytes]:
    invoice = await get_invoice_entity(db, invoice_id, user)
    return invoice_pdf_filename(invoice), render_invoice_pdf(invoice)


def _email_body(invoice, message: str | None) -> str:
    greeting = escape(invoice.client_name) if invoice.client_name else "there"
    lines = [
        f"<p>Hi {greeting},</p>",
        f"<p>Please find attached invoice <b>{escape(invoice.invoice_number)}</b> "
        f"for {format_currency(invoice.total, invoice.currency)}.</p>",
    ]
    if invoice.due_date:
        lines.append(f"<p>Payment is due by {invoice.due_date.strftime('%d %b %Y')}.</p>")
    if message:
        lines.append(f"<p>{escape(message)}</p>")
    lines.append("<p>Thank you for your business!</p>")
    return "\n".join(lines)


async def email_invoice(
    db: AsyncSession,
    invoice_id: int,
    payload: InvoiceEmailRequest,
    user: SessionUser,
    sender: EmailSender,
) -> str:
    invoice = await get_invoice_entity(db, invoice_id, user)
    pdf = render_invoice_pdf(invoice)

    message_id = await sender.send(
        to=payload.to,
        subject=payload.subject or f"Invoice {invoice.invoice_number}",
        html=_email_body(invoice, payload.message),
        attachments=[EmailAttachment(invoice_pdf_filename(invoice), pdf)],
    )

    await emit_activity(
        db,
        ActivityCode.EMAIL_INVOICE,
        actor=user,
        target_name=invoice.invoice_number,
        recipient=payload.to,
    )
    await db.commit()

    logger.info("Invoice emailed", extra={"invoice_id": invoice_id, "message_id": message_id})
    return message_id
