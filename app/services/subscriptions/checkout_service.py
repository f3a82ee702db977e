import time
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.exceptions import AppException, failure_details
from app.core.security import SessionUser
from app.constants.error_codes import ErrorCode, Guidance
from app.constants.activity_codes import ActivityCode
from app.constants.plans import (
    PLAN_CURRENCY,
    PLAN_PRICES,
    PLAN_PRODUCT_NAME,
    RECEIPT_MAX_LENGTH,
)
from app.schemas.subscriptions.subscription_schemas import CheckoutOut
from app.services.subscriptions.razorpay_client import (
    GatewayError,
    RazorpayClient,
    gateway_exception,
)
from app.services.subscriptions.subscriber_store import upsert_placeholder
from app.utils.activity_helpers import emit_activity
from app.utils.logger import get_logger

logger = get_logger(__name__)


def generate_receipt() -> str:
    """``rcpt_<10 timestamp digits>_<8 hex>``, well under the gateway ceiling."""
    stamp = str(int(time.time() * 1000))[-10:]
    receipt = f"rcpt_{stamp}_{uuid.uuid4().hex[:8]}"
    return receipt[:RECEIPT_MAX_LENGTH]


def resolve_plan_amount(plan_type: str) -> int:
    try:
        return PLAN_PRICES[plan_type]
    except KeyError:
        raise AppException(
            400,
            "Invalid plan type. Choose monthly or yearly.",
            ErrorCode.VALIDATION_ERROR,
            failure_details(Guidance.FIX_DETAILS, plan_type=plan_type),
        )


# =========================
# CREATE ORDER
# =========================
async def create_order(
    db: AsyncSession,
    user: SessionUser,
    plan_type: str,
    gateway: RazorpayClient,
) -> CheckoutOut:
    if not config.PAYMENTS_ENABLED:
        logger.warning("Checkout refused, payments disabled", extra={"user_id": user.id})
        raise AppException(
            503,
            "Payments are temporarily unavailable due to gateway maintenance",
            ErrorCode.PAYMENTS_DISABLED,
            failure_details(Guidance.RETRY, retryable=True),
        )

    plan_type = (plan_type or "").strip().lower()
    amount = resolve_plan_amount(plan_type)
    receipt = generate_receipt()

    logger.info(
        "Creating gateway order",
        extra={
            "user_id": user.id,
            "plan_type": plan_type,
            "amount": amount,
            "receipt": receipt,
        },
    )

    try:
        order = await gateway.create_order(
            amount=amount,
            currency=PLAN_CURRENCY,
            receipt=receipt,
            notes={
                "user_id": user.id,
                "user_email": user.email,
                "plan_type": plan_type,
                "product": PLAN_PRODUCT_NAME,
            },
        )
    except GatewayError as exc:
        raise gateway_exception(exc)

    order_id = order.get("id")
    if not order_id:
        logger.error("Gateway order response without id", extra={"receipt": receipt})
        raise AppException(
            502,
            "Payment gateway returned an incomplete order",
            ErrorCode.GATEWAY_REJECTED,
            failure_details(Guidance.RETRY, retryable=True),
        )

    # The order exists at the gateway already; activation upserts on its own.
    try:
        await upsert_placeholder(db, email=user.email, user_id=user.id)
        await emit_activity(
            db,
            ActivityCode.START_CHECKOUT,
            actor=user,
            plan_type=plan_type,
            order_id=order_id,
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.warning(
            "Subscriber placeholder not stored",
            extra={"user_id": user.id, "order_id": order_id},
            exc_info=True,
        )

    logger.info("Gateway order created", extra={"user_id": user.id, "order_id": order_id})

    return CheckoutOut(
        order_id=order_id,
        amount=int(order.get("amount", amount)),
        currency=order.get("currency", PLAN_CURRENCY),
        gateway_key_id=gateway.key_id,
        plan_type=plan_type,
        user_email=user.email,
        user_name=user.full_name,
    )
