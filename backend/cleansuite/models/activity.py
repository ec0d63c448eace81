"""Activity log model."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import String, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cleansuite.core.database import Base, JSONType, pg_enum
from cleansuite.models.enums import ActivityAction


class ActivityLog(Base):
    """Append-only audit trail of state-changing actions.

    Rows are inserted by ``ActivityService`` and never updated or deleted.
    """

    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    performed_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Snapshot of the actor's display name, searchable without a join
    performer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    action: Mapped[ActivityAction] = mapped_column(
        pg_enum(ActivityAction),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)

    entity_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entity_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    source: Mapped[str] = mapped_column(String(20), default="api")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
