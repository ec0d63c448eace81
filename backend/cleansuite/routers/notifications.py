"""Notifications router."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.security import AuthenticatedUser, require_company_member
from cleansuite.models.enums import NotificationSeverity, NotificationType
from cleansuite.models.notification import Notification
from cleansuite.schemas.base import BaseSchema, IDMixin

router = APIRouter(prefix="/notifications", tags=["notifications"])


class NotificationResponse(BaseSchema, IDMixin):
    title: str
    message: str
    type: NotificationType
    severity: NotificationSeverity
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="meta")
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


def _visible_to(current_user: AuthenticatedUser):
    """Addressed to the user directly or to their role."""
    conditions = [Notification.recipient_user_id == current_user.db_user_id]
    if current_user.role is not None:
        conditions.append(Notification.role_target == current_user.role)
    return or_(*conditions)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    query = (
        select(Notification)
        .where(Notification.company_id == current_user.company_id, _visible_to(current_user))
        .order_by(Notification.created_at.desc())
        .limit(min(limit, 200))
    )
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    result = await db.execute(query)
    return result.scalars().all()


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.company_id == current_user.company_id,
            _visible_to(current_user),
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        await db.commit()
        await db.refresh(notification)
    return notification
