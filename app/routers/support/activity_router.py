# app/routers/support/activity_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import SessionUser
from app.schemas.support.activity_schemas import UserActivityFilters, UserActivityListData
from app.services.support.activity_service import list_user_activities
from app.utils.get_user import get_current_user
from app.utils.response import APIResponse, success_response

router = APIRouter(prefix="/activities", tags=["User Activities"])


@router.get("/", response_model=APIResponse[UserActivityListData])
async def list_user_activities_api(
    filters: UserActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(get_current_user),
):
    result = await list_user_activities(db=db, user=user, filters=filters)
    return success_response("User activities fetched successfully", result)
