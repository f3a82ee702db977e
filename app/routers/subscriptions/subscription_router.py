from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import SessionUser
from app.utils.get_user import get_current_user
from app.utils.response import APIResponse, PAYMENT_ERROR_RESPONSES, success_response
from app.schemas.subscriptions.subscription_schemas import (
    CheckoutCreate,
    CheckoutOut,
    PaymentVerify,
    ActivationOut,
    SubscriptionStatusOut,
    PaymentFailureReport,
    PaymentFailureOut,
)
from app.services.subscriptions.razorpay_client import RazorpayClient, get_gateway_client
from app.services.subscriptions.payment_errors import GatewayErrorDescriptor, classify_failure
from app.services.subscriptions.subscription_service import (
    SubscriptionContext,
    get_subscription_context,
)
from app.services.subscriptions.checkout_service import create_order
from app.services.subscriptions.verification_service import verify_and_activate
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/subscriptions",
    tags=["Subscriptions"],
    responses=PAYMENT_ERROR_RESPONSES,
)
logger = get_logger(__name__)


@router.get("/status", response_model=APIResponse[SubscriptionStatusOut])
async def subscription_status_api(
    context: SubscriptionContext = Depends(get_subscription_context),
):
    logger.info("Subscription status", extra={"user_id": context.user.id})
    status = context.status
    return success_response(
        "Subscription status fetched successfully",
        SubscriptionStatusOut(
            subscribed=status.subscribed,
            subscription_tier=status.subscription_tier,
            subscription_end=status.subscription_end,
            payment_status=status.payment_status,
        ),
    )


@router.post("/checkout", response_model=APIResponse[CheckoutOut])
async def create_checkout_api(
    payload: CheckoutCreate,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(get_current_user),
    gateway: RazorpayClient = Depends(get_gateway_client),
):
    logger.info("Create checkout", extra={"user_id": user.id, "plan_type": payload.plan_type})
    order = await create_order(db, user, payload.plan_type, gateway)
    return success_response("Order created successfully", order)


@router.post("/verify", response_model=APIResponse[ActivationOut])
async def verify_payment_api(
    payload: PaymentVerify,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(get_current_user),
    gateway: RazorpayClient = Depends(get_gateway_client),
):
    logger.info("Verify payment", extra={"user_id": user.id, "order_id": payload.razorpay_order_id})
    activation = await verify_and_activate(db, user, payload, gateway)
    return success_response("Payment verified, subscription activated", activation)


@router.post("/payment-failure", response_model=APIResponse[PaymentFailureOut])
async def payment_failure_api(
    payload: PaymentFailureReport,
    user: SessionUser = Depends(get_current_user),
):
    failure = classify_failure(GatewayErrorDescriptor.from_mapping(payload.model_dump()))
    logger.info(
        "Payment failure reported",
        extra={
            "user_id": user.id,
            "gateway_code": payload.code,
            "failure_reason": failure.reason.value,
        },
    )
    return success_response(
        "Payment failure classified",
        PaymentFailureOut(
            reason=failure.reason,
            guidance=failure.guidance,
            message=failure.message,
            alternatives=failure.alternatives,
        ),
    )
