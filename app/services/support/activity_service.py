# app/services/support/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from app.core.security import SessionUser
from app.models.support.activity_models import UserActivity
from app.schemas.support.activity_schemas import (
    UserActivityOut,
    UserActivityFilters,
    UserActivityListData,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def list_user_activities(
    *,
    db: AsyncSession,
    user: SessionUser,
    filters: UserActivityFilters,
) -> UserActivityListData:
    # -------------------------
    # Scope: caller's own trail
    # -------------------------
    conditions = [UserActivity.user_id == user.id]
    if filters.contains:
        conditions.append(UserActivity.message.ilike(f"%{filters.contains}%"))

    order_fn = desc if filters.sort_order == "desc" else asc
    query = (
        select(UserActivity)
        .where(*conditions)
        .order_by(order_fn(UserActivity.created_at), order_fn(UserActivity.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )

    total = await db.scalar(select(func.count(UserActivity.id)).where(*conditions))
    result = await db.execute(query)

    logger.info(
        "User activities fetched",
        extra={"user_id": user.id, "total": total, "page": filters.page},
    )

    return UserActivityListData(
        total=total or 0,
        items=[UserActivityOut.model_validate(a) for a in result.scalars().all()],
    )
