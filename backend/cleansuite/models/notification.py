"""In-app notification model."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import String, DateTime, ForeignKey, Text, Boolean, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cleansuite.core.database import Base, JSONType, pg_enum
from cleansuite.models.enums import CompanyRole, NotificationSeverity, NotificationType


class Notification(Base):
    """A message addressed to one user or to every user holding a role."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recipient_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    role_target: Mapped[Optional[CompanyRole]] = mapped_column(pg_enum(CompanyRole), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(pg_enum(NotificationType), nullable=False)
    severity: Mapped[NotificationSeverity] = mapped_column(
        pg_enum(NotificationSeverity),
        default=NotificationSeverity.INFO,
        nullable=False,
    )
    # "metadata" is reserved on declarative classes
    meta: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSONType, nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
