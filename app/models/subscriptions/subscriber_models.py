import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, DateTime, Enum
from app.core.db import Base
from app.models.base.mixins import TimestampMixin
from app.models.enums.payment_status import SubscriberPaymentStatus


class Subscriber(Base, TimestampMixin):
    """Paid-plan state for one user, keyed by email (stable across gateway and store)."""

    __tablename__ = "subscribers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    gateway_customer_id = Column(String(64), nullable=True)

    subscribed = Column(Boolean, nullable=False, default=False)
    subscription_tier = Column(String(50), nullable=True)
    subscription_end = Column(DateTime(timezone=True), nullable=True)

    payment_status = Column(
        Enum(SubscriberPaymentStatus),
        nullable=False,
        default=SubscriberPaymentStatus.pending,
    )
    last_payment_id = Column(String(64), nullable=True)

    def is_active(self, now: datetime | None = None) -> bool:
        if not self.subscribed:
            return False
        if self.subscription_end is None:
            return True

        now = now or datetime.now(timezone.utc)
        end = self.subscription_end
        # sqlite drops tzinfo on the way back
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return end > now

    def __repr__(self):
        return f"<Subscriber email={self.email} subscribed={self.subscribed} tier={self.subscription_tier}>"
