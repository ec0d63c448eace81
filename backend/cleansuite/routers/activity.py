"""Activity log router. Entries are append-only; there is no update or delete."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.security import AuthenticatedUser, require_admin_or_manager
from cleansuite.models.enums import ActivityAction
from cleansuite.schemas.activity import ActivityLogResponse, ActivityPageResponse
from cleansuite.services.activity import ActivityService

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("", response_model=ActivityPageResponse)
async def list_activity(
    search: Optional[str] = None,
    action: Optional[ActivityAction] = None,
    user_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Search the company's activity log, newest first.

    ``date_from`` and ``date_to`` are inclusive calendar days.
    """
    result = await ActivityService(db, current_user.company_id).search(
        search=search,
        action=action,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    return ActivityPageResponse(
        items=[ActivityLogResponse.model_validate(entry) for entry in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )
