"""Estimate schemas. Totals are always computed server-side."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from cleansuite.models.enums import EstimateStatus, Frequency, ServiceType
from cleansuite.schemas.base import BaseSchema, IDMixin, TimestampMixin


class PropertyDetails(BaseSchema):
    """Inputs to the price calculator."""

    square_footage: int = Field(..., ge=0, le=100_000)
    bedrooms: int = Field(0, ge=0, le=50)
    bathrooms: int = Field(0, ge=0, le=50)
    living_areas: int = Field(0, ge=0, le=50)
    has_kitchen: bool = True
    service_type: ServiceType = ServiceType.STANDARD
    frequency: Frequency = Frequency.ONE_TIME

    include_pets: bool = False
    include_children: bool = False
    include_green: bool = False
    include_fridge: bool = False
    include_oven: bool = False
    include_cabinets: bool = False
    include_windows: bool = False


class QuoteResponse(BaseSchema):
    hourly_rate: Decimal
    base_hours: Decimal
    room_hours: Decimal
    total_hours: Decimal
    base_price: Decimal
    extras_total: Decimal
    total: int


class EstimateCreate(PropertyDetails):
    client_name: str = Field(..., min_length=2, max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class EstimateUpdate(BaseSchema):
    client_name: Optional[str] = Field(None, min_length=2, max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    square_footage: Optional[int] = Field(None, ge=0, le=100_000)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    living_areas: Optional[int] = Field(None, ge=0, le=50)
    has_kitchen: Optional[bool] = None
    service_type: Optional[ServiceType] = None
    frequency: Optional[Frequency] = None

    include_pets: Optional[bool] = None
    include_children: Optional[bool] = None
    include_green: Optional[bool] = None
    include_fridge: Optional[bool] = None
    include_oven: Optional[bool] = None
    include_cabinets: Optional[bool] = None
    include_windows: Optional[bool] = None


class EstimateResponse(PropertyDetails, IDMixin, TimestampMixin):
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    notes: Optional[str] = None
    hourly_rate: Decimal
    fee_snapshot: dict[str, str] = {}
    total_amount: int
    status: EstimateStatus
    sent_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    created_by_id: Optional[UUID] = None


class EstimateSchedule(BaseSchema):
    """Turn an accepted estimate into a scheduled job."""

    client_id: UUID
    location_id: Optional[UUID] = None
    cleaner_id: Optional[UUID] = None
    scheduled_date: date
    start_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
