from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import SessionUser
from app.utils.response import APIResponse, success_response
from app.schemas.billing.dashboard_schemas import DashboardStats, MonthlyEarnings, HistoryData
from app.services.billing.dashboard_service import (
    get_dashboard_stats,
    get_monthly_earnings,
    get_history,
)
from app.services.subscriptions.subscription_service import require_active_subscription

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _year_or_current(year: Optional[int]) -> int:
    return year or datetime.now(timezone.utc).year


@router.get("/stats", response_model=APIResponse[DashboardStats])
async def dashboard_stats_api(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    stats = await get_dashboard_stats(db, user)
    return success_response("Dashboard stats fetched successfully", stats)


@router.get("/earnings", response_model=APIResponse[List[MonthlyEarnings]])
async def monthly_earnings_api(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
    year: Optional[int] = Query(None, ge=2000, le=2100),
):
    data = await get_monthly_earnings(db, user, _year_or_current(year))
    return success_response("Monthly earnings fetched successfully", data)


@router.get("/history", response_model=APIResponse[HistoryData])
async def history_api(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
    year: Optional[int] = Query(None, ge=2000, le=2100),
):
    data = await get_history(db, user, _year_or_current(year))
    return success_response("History fetched successfully", data)
