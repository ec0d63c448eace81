"""Company profile and configuration schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from cleansuite.models.enums import CompanyRole, ExtraKind, InvoiceGenerationMode, Province
from cleansuite.schemas.base import BaseSchema, IDMixin, TimestampMixin


class CompanyUpdate(BaseSchema):
    trade_name: Optional[str] = Field(None, min_length=2, max_length=255)
    legal_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[Province] = None
    postal_code: Optional[str] = Field(None, max_length=20)
    business_number: Optional[str] = Field(None, max_length=50)
    gst_hst_number: Optional[str] = Field(None, max_length=50)
    timezone: Optional[str] = Field(None, max_length=50)


class CompanyResponse(BaseSchema, IDMixin, TimestampMixin):
    trade_name: str
    legal_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Province
    postal_code: Optional[str] = None
    business_number: Optional[str] = None
    gst_hst_number: Optional[str] = None
    timezone: str


class EstimateConfigUpdate(BaseSchema):
    default_hourly_rate: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    invoice_generation_mode: Optional[InvoiceGenerationMode] = None
    auto_generate_cash_receipt: Optional[bool] = None


class EstimateConfigResponse(BaseSchema):
    default_hourly_rate: Decimal
    tax_rate: Decimal
    invoice_generation_mode: InvoiceGenerationMode
    auto_generate_cash_receipt: bool


class ExtraFeeUpdate(BaseSchema):
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class ExtraFeeResponse(BaseSchema):
    kind: ExtraKind
    name: str
    amount: Decimal
    is_active: bool


class ChecklistItemCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ChecklistItemUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ChecklistOrderUpdate(BaseSchema):
    """Item ids in their new display order."""

    item_ids: list[UUID] = Field(..., min_length=1)


class ChecklistItemResponse(BaseSchema, IDMixin, TimestampMixin):
    name: str
    description: Optional[str] = None
    display_order: int
    is_active: bool


class BrandingUpdate(BaseSchema):
    logo_url: Optional[str] = Field(None, max_length=1000)
    primary_color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")


class BrandingResponse(BaseSchema):
    logo_url: Optional[str] = None
    primary_color: str
    updated_at: Optional[datetime] = None


class MemberResponse(BaseSchema):
    user_id: UUID
    email: str
    full_name: str
    role: CompanyRole
    hourly_wage: Optional[Decimal] = None
    phone: Optional[str] = None
    is_active: bool = True


class MemberCreate(BaseSchema):
    email: EmailStr
    role: CompanyRole = CompanyRole.CLEANER
    hourly_wage: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)


class MemberUpdate(BaseSchema):
    role: Optional[CompanyRole] = None
    hourly_wage: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_active: Optional[bool] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
