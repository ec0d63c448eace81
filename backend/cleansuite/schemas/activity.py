"""Activity log schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from cleansuite.models.enums import ActivityAction
from cleansuite.schemas.base import BaseSchema, IDMixin


class ActivityLogResponse(BaseSchema, IDMixin):
    action: ActivityAction
    description: str
    performed_by_user_id: Optional[UUID] = None
    performer_name: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime


class ActivityPageResponse(BaseSchema):
    items: list[ActivityLogResponse]
    total: int
    page: int
    page_size: int
    pages: int
