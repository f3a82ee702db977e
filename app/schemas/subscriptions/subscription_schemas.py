from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from app.constants.error_codes import Guidance
from app.services.subscriptions.payment_errors import PaymentFailureReason


PlanType = Literal["monthly", "yearly"]


# =========================
# CHECKOUT
# =========================
class CheckoutCreate(BaseModel):
    plan_type: str = Field(min_length=1, max_length=20)


class CheckoutOut(BaseModel):
    order_id: str
    amount: int
    currency: str
    gateway_key_id: str
    plan_type: PlanType
    user_email: str
    user_name: Optional[str] = None


# =========================
# VERIFY
# =========================
class PaymentVerify(BaseModel):
    # empty strings are rejected by the service with INVALID_PAYMENT_DETAILS
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class ActivationOut(BaseModel):
    tier: str
    expires_at: datetime
    payment_id: str


# =========================
# STATUS
# =========================
class SubscriptionStatusOut(BaseModel):
    subscribed: bool
    subscription_tier: Optional[str] = None
    subscription_end: Optional[datetime] = None
    payment_status: Optional[str] = None


# =========================
# WIDGET FAILURE
# =========================
class PaymentFailureReport(BaseModel):
    code: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    reason: Optional[str] = None
    step: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class PaymentFailureOut(BaseModel):
    reason: PaymentFailureReason
    guidance: Guidance
    message: str
    alternatives: List[str] = []


# =========================
# WEBHOOK
# =========================
class WebhookAck(BaseModel):
    received: bool = True
    event: Optional[str] = None
    processed: bool = False
