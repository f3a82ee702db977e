# app/routers/masters/client_router.py

from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import SessionUser
from app.utils.response import APIResponse, success_response
from app.schemas.masters.client_schemas import (
    ClientCreate,
    ClientUpdate,
    ClientOut,
    ClientListData,
)
from app.services.masters.client_service import (
    create_client,
    get_client,
    list_clients,
    update_client,
    delete_client,
)
from app.services.subscriptions.subscription_service import require_active_subscription
from app.utils.logger import get_logger

router = APIRouter(prefix="/clients", tags=["Clients"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse[ClientOut])
async def create_client_api(
    payload: ClientCreate,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info("Create client", extra={"user_id": user.id})
    client = await create_client(db, payload, user)
    return success_response("Client created successfully", client)


@router.get("/{client_id}", response_model=APIResponse[ClientOut])
async def get_client_api(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    client = await get_client(db, client_id, user)
    return success_response("Client fetched successfully", client)


@router.get("/", response_model=APIResponse[ClientListData])
async def list_clients_api(
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
    name: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    logger.info(
        "List clients",
        extra={"user_id": user.id, "client_name": name, "page": page, "page_size": page_size},
    )
    data = await list_clients(db, user, name=name, page=page, page_size=page_size)
    return success_response("Clients fetched successfully", data)


@router.patch("/{client_id}", response_model=APIResponse[ClientOut])
async def update_client_api(
    client_id: int,
    payload: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info("Update client", extra={"client_id": client_id})
    client = await update_client(db, client_id, payload, user)
    return success_response("Client updated successfully", client)


@router.delete("/{client_id}", response_model=APIResponse[None])
async def delete_client_api(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    user: SessionUser = Depends(require_active_subscription),
):
    logger.info("Delete client", extra={"client_id": client_id})
    await delete_client(db, client_id, user)
    return success_response("Client deleted successfully")
