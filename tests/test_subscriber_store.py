from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.models.subscriptions.subscriber_models import Subscriber
from app.services.subscriptions.subscriber_store import (
    get_subscriber,
    upsert_activation,
    upsert_placeholder,
)
from app.services.subscriptions.subscription_service import get_subscription_status
from conftest import activate

EMAIL = "asha@example.com"


async def test_placeholder_does_not_demote_active_subscriber(session_factory, user):
    await activate(session_factory, user, days=30)

    async with session_factory() as session:
        await upsert_placeholder(session, email=EMAIL, user_id=None)
        await session.commit()

    async with session_factory() as session:
        row = await get_subscriber(session, EMAIL)
    assert row.subscribed is True
    assert row.subscription_tier == "Pro Monthly"
    assert row.user_id == user.id


async def test_activation_upsert_keeps_single_row(session_factory):
    end = datetime.now(timezone.utc) + timedelta(days=30)

    async with session_factory() as session:
        for payment_id in ("pay_1", "pay_2"):
            await upsert_activation(
                session,
                email=EMAIL,
                user_id=None,
                tier="Pro Monthly",
                subscription_end=end,
                payment_id=payment_id,
                gateway_customer_id="cust_1" if payment_id == "pay_1" else None,
            )
        await session.commit()

    async with session_factory() as session:
        rows = (await session.execute(select(Subscriber))).scalars().all()
    assert len(rows) == 1
    assert rows[0].last_payment_id == "pay_2"
    # a later payment without a customer id keeps the earlier one
    assert rows[0].gateway_customer_id == "cust_1"


async def test_expired_subscription_reads_as_inactive(session_factory, user):
    await activate(session_factory, user, days=-2)

    async with session_factory() as session:
        status = await get_subscription_status(session, user)

    assert status.subscribed is False
    assert status.subscription_tier == "Pro Monthly"


async def test_status_evaluated_at_given_time(session_factory, user):
    await activate(session_factory, user, days=30)

    async with session_factory() as session:
        later = await get_subscription_status(session, user, now=datetime.now(timezone.utc) + timedelta(days=31))
        sooner = await get_subscription_status(session, user, now=datetime.now(timezone.utc) + timedelta(days=29))

    assert later.subscribed is False
    assert sooner.subscribed is True
