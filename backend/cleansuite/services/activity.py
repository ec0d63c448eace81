"""Activity log service: the append path and the filtered read path."""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import LIKE_ESCAPE, contains_pattern
from cleansuite.models.activity import ActivityLog
from cleansuite.models.enums import ActivityAction


@dataclass
class ActivityPage:
    items: list[ActivityLog]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def date_range_bounds(
    date_from: Optional[date], date_to: Optional[date]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Half-open datetime bounds covering whole calendar days [date_from, date_to]."""
    start = datetime.combine(date_from, time.min) if date_from else None
    end = datetime.combine(date_to + timedelta(days=1), time.min) if date_to else None
    return start, end


class ActivityService:
    """Writes and queries activity log entries for one company."""

    def __init__(
        self,
        db: AsyncSession,
        company_id: UUID,
        user_id: Optional[UUID] = None,
        performer_name: Optional[str] = None,
    ):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.performer_name = performer_name

    @classmethod
    def for_user(cls, db: AsyncSession, current_user) -> "ActivityService":
        return cls(
            db,
            company_id=current_user.company_id,
            user_id=current_user.db_user_id,
            performer_name=current_user.display_name or current_user.email,
        )

    async def log(
        self,
        action: ActivityAction,
        description: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        entity_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        """Append an entry. It is flushed with the caller's transaction."""
        entry = ActivityLog(
            company_id=self.company_id,
            performed_by_user_id=self.user_id,
            performer_name=self.performer_name,
            action=action,
            description=description,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            entity_name=entity_name,
            details=details or {},
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def search(
        self,
        search: Optional[str] = None,
        action: Optional[ActivityAction] = None,
        user_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        page: int = 1,
        page_size: int = 25,
    ) -> ActivityPage:
        """Filtered, newest-first page of entries."""
        query = select(ActivityLog).where(ActivityLog.company_id == self.company_id)

        if search:
            pattern = contains_pattern(search.strip().lower())
            query = query.where(
                or_(
                    func.lower(ActivityLog.description).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(ActivityLog.performer_name, "")).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(cast(ActivityLog.action, String)).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        if action:
            query = query.where(ActivityLog.action == action)
        if user_id:
            query = query.where(ActivityLog.performed_by_user_id == user_id)

        start, end = date_range_bounds(date_from, date_to)
        if start:
            query = query.where(ActivityLog.created_at >= start)
        if end:
            query = query.where(ActivityLog.created_at < end)

        total_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar_one()

        result = await self.db.execute(
            query.order_by(ActivityLog.created_at.desc(), ActivityLog.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return ActivityPage(
            items=list(result.scalars().all()),
            total=total,
            page=page,
            page_size=page_size,
        )
