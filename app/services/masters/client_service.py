# app/services/masters/client_service.py

from typing import Optional

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.masters.client_models import Client
from app.schemas.masters.client_schemas import (
    ClientCreate,
    ClientUpdate,
    ClientOut,
    ClientListData,
)
from app.core.exceptions import AppException
from app.core.security import SessionUser
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity
from app.utils.logger import get_logger

logger = get_logger(__name__)

TRACKED_FIELDS = ("name", "email", "phone", "address", "gstin")


async def get_owned_client(db: AsyncSession, client_id: int, user: SessionUser) -> Client:
    client = await db.scalar(
        select(Client).where(
            Client.id == client_id,
            Client.user_id == user.id,
        )
    )
    if not client:
        raise AppException(404, "Client not found", ErrorCode.CLIENT_NOT_FOUND)
    return client


# =========================
# CREATE
# =========================
async def create_client(db: AsyncSession, payload: ClientCreate, user: SessionUser) -> ClientOut:
    client = Client(user_id=user.id, **payload.model_dump())
    db.add(client)
    await db.flush()

    await emit_activity(
        db,
        ActivityCode.CREATE_CLIENT,
        actor=user,
        target_name=client.name,
    )

    await db.commit()
    await db.refresh(client)
    return ClientOut.model_validate(client)


# =========================
# GET / LIST
# =========================
async def get_client(db: AsyncSession, client_id: int, user: SessionUser) -> ClientOut:
    client = await get_owned_client(db, client_id, user)
    return ClientOut.model_validate(client)


async def list_clients(
    db: AsyncSession,
    user: SessionUser,
    *,
    name: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> ClientListData:
    conditions = [Client.user_id == user.id]
    if name:
        conditions.append(Client.name.ilike(f"%{name}%"))

    total = await db.scalar(select(func.count(Client.id)).where(*conditions))

    result = await db.execute(
        select(Client)
        .where(*conditions)
        .order_by(desc(Client.created_at), desc(Client.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return ClientListData(
        total=total or 0,
        items=[ClientOut.model_validate(c) for c in result.scalars().all()],
    )


# =========================
# UPDATE
# =========================
async def update_client(
    db: AsyncSession,
    client_id: int,
    payload: ClientUpdate,
    user: SessionUser,
) -> ClientOut:
    client = await get_owned_client(db, client_id, user)

    data = payload.model_dump(exclude_unset=True)
    changes: list[str] = []

    for field in TRACKED_FIELDS:
        if field not in data:
            continue
        new_value = data[field]
        if new_value != getattr(client, field):
            changes.append(field)
            setattr(client, field, new_value)

    if not changes:
        return ClientOut.model_validate(client)

    await emit_activity(
        db,
        ActivityCode.UPDATE_CLIENT,
        actor=user,
        target_name=client.name,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(client)
    return ClientOut.model_validate(client)


# =========================
# DELETE
# =========================
async def delete_client(db: AsyncSession, client_id: int, user: SessionUser) -> None:
    client = await get_owned_client(db, client_id, user)
    name = client.name

    # invoices keep their snapshot; client_id is nulled by the FK
    await db.delete(client)

    await emit_activity(
        db,
        ActivityCode.DELETE_CLIENT,
        actor=user,
        target_name=name,
    )

    await db.commit()
    logger.info("Client deleted", extra={"client_id": client_id, "user_id": user.id})
