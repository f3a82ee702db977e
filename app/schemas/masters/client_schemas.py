# app/schemas/masters/client_schemas.py

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List
from datetime import datetime


class ClientBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    gstin: Optional[str] = Field(None, max_length=15)


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    gstin: Optional[str] = Field(None, max_length=15)


class ClientOut(ClientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ClientListData(BaseModel):
    total: int
    items: List[ClientOut]
