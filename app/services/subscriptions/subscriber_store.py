import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import dialect_insert
from app.models.subscriptions.subscriber_models import Subscriber
from app.models.enums.payment_status import SubscriberPaymentStatus
from app.core.exceptions import AppException, failure_details
from app.constants.error_codes import ErrorCode, Guidance


def persistence_failed(message: str = "Failed to update subscription") -> AppException:
    return AppException(
        503,
        message,
        ErrorCode.PERSISTENCE_FAILED,
        failure_details(Guidance.RETRY, retryable=True),
    )


async def get_subscriber(db: AsyncSession, email: str) -> Optional[Subscriber]:
    result = await db.execute(
        select(Subscriber).where(Subscriber.email == email)
    )
    return result.scalar_one_or_none()


async def upsert_placeholder(db: AsyncSession, *, email: str, user_id: Optional[str]) -> None:
    """
    Make sure a row exists for ``email``. A new row starts unsubscribed; an
    existing row keeps its subscription fields so a renewal checkout does not
    demote a paying user before the new payment lands.
    """
    stmt = dialect_insert(db, Subscriber).values(
        id=str(uuid.uuid4()),
        email=email,
        user_id=user_id,
        subscribed=False,
        subscription_tier=None,
        subscription_end=None,
        payment_status=SubscriberPaymentStatus.pending,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Subscriber.email],
        set_={
            "user_id": func.coalesce(stmt.excluded.user_id, Subscriber.user_id),
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)


async def upsert_activation(
    db: AsyncSession,
    *,
    email: str,
    user_id: Optional[str],
    tier: str,
    subscription_end: datetime,
    payment_id: str,
    gateway_customer_id: Optional[str] = None,
) -> None:
    """Last write wins on the email key; replays only refresh end date and payment fields."""
    values = {
        "subscribed": True,
        "subscription_tier": tier,
        "subscription_end": subscription_end,
        "payment_status": SubscriberPaymentStatus.completed,
        "last_payment_id": payment_id,
    }

    stmt = dialect_insert(db, Subscriber).values(
        id=str(uuid.uuid4()),
        email=email,
        user_id=user_id,
        gateway_customer_id=gateway_customer_id,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Subscriber.email],
        set_={
            **values,
            "user_id": func.coalesce(stmt.excluded.user_id, Subscriber.user_id),
            "gateway_customer_id": func.coalesce(
                stmt.excluded.gateway_customer_id,
                Subscriber.gateway_customer_id,
            ),
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)
