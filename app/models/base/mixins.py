from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )


class OwnerMixin:
    """Rows owned by a user of the external auth provider (opaque id)."""

    @declared_attr
    def user_id(cls):
        return Column(String(64), nullable=False, index=True)
