"""Authentication schemas."""

from typing import Optional
from uuid import UUID

from cleansuite.models.enums import CompanyRole
from cleansuite.schemas.base import BaseSchema


class MeResponse(BaseSchema):
    """Current user with company context."""

    uid: str
    email: Optional[str] = None
    user_id: Optional[UUID] = None
    display_name: Optional[str] = None
    company_id: Optional[UUID] = None
    role: Optional[CompanyRole] = None
