"""Client and location schemas."""

from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from cleansuite.models.enums import ClientStatus, Province
from cleansuite.schemas.base import BaseSchema, IDMixin, TimestampMixin


class LocationCreate(BaseSchema):
    address: str = Field(..., min_length=3)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[Province] = None
    postal_code: Optional[str] = Field(None, max_length=20)
    access_instructions: Optional[str] = None
    alarm_code: Optional[str] = Field(None, max_length=50)


class LocationUpdate(BaseSchema):
    address: Optional[str] = Field(None, min_length=3)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[Province] = None
    postal_code: Optional[str] = Field(None, max_length=20)
    access_instructions: Optional[str] = None
    alarm_code: Optional[str] = Field(None, max_length=50)


class LocationResponse(BaseSchema, IDMixin, TimestampMixin):
    client_id: UUID
    address: str
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    access_instructions: Optional[str] = None
    alarm_code: Optional[str] = None


class ClientCreate(BaseSchema):
    name: str = Field(..., min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    locations: list[LocationCreate] = []


class ClientUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    status: Optional[ClientStatus] = None


class ClientResponse(BaseSchema, IDMixin, TimestampMixin):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    status: ClientStatus
    locations: list[LocationResponse] = []
