from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core import config
from app.core.exceptions import AppException, failure_details
from app.core.security import SessionUser
from app.constants.error_codes import ErrorCode, Guidance
from app.models.subscriptions.subscriber_models import Subscriber
from app.services.subscriptions.subscriber_store import (
    get_subscriber,
    upsert_placeholder,
    persistence_failed,
)
from app.utils.get_user import get_current_user
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubscriptionStatus:
    subscribed: bool
    subscription_tier: Optional[str] = None
    subscription_end: Optional[datetime] = None
    payment_status: Optional[str] = None

    @classmethod
    def from_row(cls, row: Subscriber, now: datetime | None = None) -> "SubscriptionStatus":
        return cls(
            subscribed=row.is_active(now),
            subscription_tier=row.subscription_tier,
            subscription_end=row.subscription_end,
            payment_status=row.payment_status.value if row.payment_status else None,
        )


@dataclass(frozen=True)
class SubscriptionContext:
    """Caller identity plus plan state, handed to every gated route."""

    user: SessionUser
    status: SubscriptionStatus

    @property
    def subscribed(self) -> bool:
        return self.status.subscribed


# =========================
# READ MODEL
# =========================
async def get_subscription_status(
    db: AsyncSession,
    user: SessionUser,
    now: datetime | None = None,
) -> SubscriptionStatus:
    try:
        row = await get_subscriber(db, user.email)
        if row is None:
            await upsert_placeholder(db, email=user.email, user_id=user.id)
            await db.commit()
            logger.info("Subscriber placeholder created", extra={"user_id": user.id})
            return SubscriptionStatus(subscribed=False, payment_status="pending")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Subscription lookup failed", extra={"user_id": user.id})
        raise persistence_failed("Failed to read subscription status")

    return SubscriptionStatus.from_row(row, now or datetime.now(timezone.utc))


# =========================
# DEPENDENCIES
# =========================
async def get_subscription_context(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(get_current_user),
) -> SubscriptionContext:
    status = await get_subscription_status(db, user)
    return SubscriptionContext(user=user, status=status)


async def require_active_subscription(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(get_current_user),
) -> SessionUser:
    if not config.SUBSCRIPTION_GATE_ENABLED:
        return user

    status = await get_subscription_status(db, user)
    if not status.subscribed:
        logger.info("Subscription required", extra={"user_id": user.id})
        raise AppException(
            403,
            "An active subscription is required",
            ErrorCode.SUBSCRIPTION_REQUIRED,
            failure_details(Guidance.CONTACT_SUPPORT, subscription_end=status.subscription_end),
        )
    return user
