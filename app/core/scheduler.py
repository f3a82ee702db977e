from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.db import AsyncSessionLocal

from app.services.billing.overdue_service import auto_mark_overdue_invoices

scheduler = AsyncIOScheduler()

@scheduler.scheduled_job("cron", hour=0, minute=5)  # daily at 00:05
async def mark_overdue_invoices_job():
    async with AsyncSessionLocal() as db:
        await auto_mark_overdue_invoices(db)
