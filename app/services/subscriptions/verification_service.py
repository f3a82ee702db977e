from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppException, failure_details
from app.core.security import SessionUser, verify_payment_signature
from app.constants.error_codes import ErrorCode, Guidance
from app.constants.activity_codes import ActivityCode
from app.constants.plans import PlanGrant, plan_for_amount
from app.schemas.subscriptions.subscription_schemas import PaymentVerify, ActivationOut
from app.services.subscriptions.razorpay_client import (
    GatewayError,
    RazorpayClient,
    gateway_exception,
)
from app.services.subscriptions.subscriber_store import (
    upsert_activation,
    persistence_failed,
)
from app.utils.activity_helpers import emit_activity
from app.utils.logger import get_logger

logger = get_logger(__name__)

CAPTURED = "captured"


def payment_amount(payment: dict) -> int:
    try:
        return int(payment.get("amount") or 0)
    except (TypeError, ValueError):
        return 0


def check_declared_plan(payment: dict, grant: PlanGrant) -> None:
    """Amount decides the plan; a disagreeing ``notes.plan_type`` is only reported."""
    notes = payment.get("notes")
    declared = notes.get("plan_type") if isinstance(notes, dict) else None
    if declared and declared != grant.plan_type:
        logger.warning(
            "Declared plan does not match captured amount",
            extra={
                "payment_id": payment.get("id"),
                "declared_plan": declared,
                "derived_plan": grant.plan_type,
                "amount": payment.get("amount"),
            },
        )


async def activate_subscription(
    db: AsyncSession,
    *,
    email: str,
    user_id: Optional[str],
    payment: dict,
    source: str,
    now: datetime | None = None,
) -> tuple[PlanGrant, datetime]:
    """Upsert the activation for a captured payment and commit. Shared by verify and webhook."""
    grant = plan_for_amount(payment_amount(payment))
    check_declared_plan(payment, grant)

    expires_at = (now or datetime.now(timezone.utc)) + grant.validity
    payment_id = payment.get("id")

    try:
        await upsert_activation(
            db,
            email=email,
            user_id=user_id,
            tier=grant.tier,
            subscription_end=expires_at,
            payment_id=payment_id,
            gateway_customer_id=payment.get("customer_id"),
        )
        await emit_activity(
            db,
            ActivityCode.ACTIVATE_SUBSCRIPTION,
            user_id=user_id,
            email=email,
            tier=grant.tier,
            expires_at=expires_at.date().isoformat(),
            source=source,
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Subscription activation not stored",
            extra={"payment_id": payment_id, "source": source},
        )
        raise persistence_failed()

    logger.info(
        "Subscription activated",
        extra={
            "payment_id": payment_id,
            "tier": grant.tier,
            "expires_at": expires_at.isoformat(),
            "source": source,
        },
    )
    return grant, expires_at


# =========================
# VERIFY + ACTIVATE
# =========================
async def verify_and_activate(
    db: AsyncSession,
    user: SessionUser,
    payload: PaymentVerify,
    gateway: RazorpayClient,
) -> ActivationOut:
    payment_id = (payload.razorpay_payment_id or "").strip()
    order_id = (payload.razorpay_order_id or "").strip()
    signature = (payload.razorpay_signature or "").strip()

    if not payment_id or not order_id or not signature:
        logger.warning("Incomplete payment details", extra={"user_id": user.id})
        raise AppException(
            400,
            "Invalid payment details",
            ErrorCode.INVALID_PAYMENT_DETAILS,
            failure_details(Guidance.FIX_DETAILS),
        )

    if not verify_payment_signature(order_id, payment_id, signature, gateway.key_secret):
        logger.warning(
            "Payment signature mismatch",
            extra={"user_id": user.id, "order_id": order_id, "payment_id": payment_id},
        )
        raise AppException(
            400,
            "Invalid payment signature",
            ErrorCode.INVALID_SIGNATURE,
            failure_details(Guidance.CONTACT_SUPPORT),
        )

    try:
        payment = await gateway.fetch_payment(payment_id)
    except GatewayError as exc:
        raise gateway_exception(exc)

    status = payment.get("status")
    if status != CAPTURED:
        logger.warning(
            "Payment not captured",
            extra={"payment_id": payment_id, "payment_status": status},
        )
        raise AppException(
            402,
            "Payment not captured",
            ErrorCode.PAYMENT_NOT_CAPTURED,
            failure_details(Guidance.RETRY, payment_status=status),
        )

    payment = {**payment, "id": payment.get("id") or payment_id}
    grant, expires_at = await activate_subscription(
        db,
        email=user.email,
        user_id=user.id,
        payment=payment,
        source="checkout",
    )

    return ActivationOut(
        tier=grant.tier,
        expires_at=expires_at,
        payment_id=payment["id"],
    )
