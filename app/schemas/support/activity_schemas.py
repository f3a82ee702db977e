# app/schemas/support/activity_schemas.py

from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional
from datetime import datetime
from fastapi import Query


class UserActivityFilters(BaseModel):
    contains: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_order: Literal["asc", "desc"] = Query("desc")


class UserActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username_snapshot: str
    message: str
    created_at: datetime


class UserActivityListData(BaseModel):
    total: int
    items: List[UserActivityOut]
