"""
Server-to-server reconciliation of gateway events.

Runs without a user session: the raw body is authenticated with the webhook
secret before any field is trusted, and the subscriber is resolved by email
alone. Activation goes through the same upsert as client-side verification,
so a replayed event only refreshes the end date and payment fields.
"""

import json
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.exceptions import AppException, failure_details
from app.core.security import verify_webhook_signature
from app.constants.error_codes import ErrorCode, Guidance
from app.schemas.subscriptions.subscription_schemas import WebhookAck
from app.services.subscriptions.verification_service import activate_subscription
from app.utils.logger import get_logger

logger = get_logger(__name__)

PAYMENT_CAPTURED = "payment.captured"


def _rejected(message: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR) -> AppException:
    return AppException(400, message, error_code, failure_details(Guidance.CONTACT_SUPPORT))


def get_webhook_secret() -> str:
    if not config.RAZORPAY_WEBHOOK_SECRET:
        logger.error("Webhook secret missing")
        raise AppException(
            500,
            "Webhook secret not configured",
            ErrorCode.GATEWAY_NOT_CONFIGURED,
            failure_details(Guidance.CONTACT_SUPPORT),
        )
    return config.RAZORPAY_WEBHOOK_SECRET


def extract_payment_entity(event: dict) -> Optional[dict]:
    payload = event.get("payload")
    if not isinstance(payload, dict):
        return None
    payment = payload.get("payment")
    if not isinstance(payment, dict):
        return None
    entity = payment.get("entity")
    return entity if isinstance(entity, dict) else None


def resolve_email(payment: dict) -> Optional[str]:
    notes = payment.get("notes") if isinstance(payment.get("notes"), dict) else {}
    email = payment.get("email") or notes.get("user_email")
    return email.strip() if isinstance(email, str) and email.strip() else None


# =========================
# HANDLE EVENT
# =========================
async def handle_webhook(
    db: AsyncSession,
    raw_body: bytes,
    signature: Optional[str],
    secret: str,
) -> WebhookAck:
    if not signature:
        logger.warning("Webhook without signature header")
        raise _rejected("Missing webhook signature", ErrorCode.INVALID_SIGNATURE)

    if not verify_webhook_signature(raw_body, signature, secret):
        logger.warning("Webhook signature mismatch")
        raise _rejected("Invalid webhook signature", ErrorCode.INVALID_SIGNATURE)

    try:
        event = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not JSON")
        raise _rejected("Invalid webhook payload")

    if not isinstance(event, dict):
        raise _rejected("Invalid webhook payload")

    event_type = event.get("event")
    if event_type != PAYMENT_CAPTURED:
        logger.info("Webhook event ignored", extra={"event": event_type})
        return WebhookAck(event=event_type, processed=False)

    payment = extract_payment_entity(event)
    if payment is None or not payment.get("id"):
        logger.warning("Webhook without payment entity", extra={"event": event_type})
        raise _rejected("Webhook payload has no payment entity")

    email = resolve_email(payment)
    if not email:
        logger.warning("Webhook payment without email", extra={"payment_id": payment.get("id")})
        raise _rejected("Cannot attribute payment: no email on payment or notes")

    notes = payment.get("notes") if isinstance(payment.get("notes"), dict) else {}
    user_id = notes.get("user_id")

    await activate_subscription(
        db,
        email=email,
        user_id=str(user_id) if user_id else None,
        payment=payment,
        source="webhook",
    )

    return WebhookAck(event=event_type, processed=True)
