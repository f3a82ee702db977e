from datetime import date

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.billing.invoice_models import Invoice
from app.models.enums.invoice_status import InvoiceStatus
from app.utils.activity_helpers import emit_activity
from app.constants.activity_codes import ActivityCode
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _mark_overdue_stmt(today: date):
    return (
        update(Invoice)
        .where(
            Invoice.status == InvoiceStatus.pending,
            Invoice.due_date.isnot(None),
            Invoice.due_date < today,
        )
        .values(status=InvoiceStatus.overdue)
        .returning(Invoice.id, Invoice.invoice_number, Invoice.user_id)
        .execution_options(synchronize_session=False)
    )


async def auto_mark_overdue_invoices(db: AsyncSession, today: date | None = None) -> int:
    today = today or date.today()

    result = await db.execute(_mark_overdue_stmt(today))
    marked = result.all()

    if not marked:
        return 0

    for row in marked:
        await emit_activity(
            db,
            ActivityCode.MARK_INVOICE_OVERDUE,
            user_id=row.user_id,
            target_name=row.invoice_number,
            changes=str(today),
        )

    await db.commit()
    logger.info("Invoices marked overdue", extra={"count": len(marked), "run_date": str(today)})
    return len(marked)
