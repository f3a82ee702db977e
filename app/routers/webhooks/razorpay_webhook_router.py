from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.response import APIResponse, success_response
from app.schemas.subscriptions.subscription_schemas import WebhookAck
from app.services.subscriptions.webhook_service import handle_webhook, get_webhook_secret
from app.utils.logger import get_logger

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
logger = get_logger(__name__)


@router.post("/razorpay", response_model=APIResponse[WebhookAck])
async def razorpay_webhook_api(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    secret: str = Depends(get_webhook_secret),
):
    # signature covers the exact bytes received
    raw_body = await request.body()
    logger.info("Webhook received", extra={"size": len(raw_body)})
    ack = await handle_webhook(db, raw_body, x_razorpay_signature, secret)
    return success_response("Webhook processed", ack)
