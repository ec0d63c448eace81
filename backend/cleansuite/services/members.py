"""Company member management: add by email, update, deactivate."""

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from firebase_admin import auth
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleansuite.core.errors import Conflict, NotFound, ValidationFailed
from cleansuite.core.security import AuthenticatedUser, init_firebase
from cleansuite.models.company import CompanyMembership
from cleansuite.models.enums import ActivityAction
from cleansuite.models.user import User
from cleansuite.schemas.company import MemberCreate, MemberUpdate
from cleansuite.services.activity import ActivityService

logger = logging.getLogger(__name__)

MEMBERSHIP_FIELDS = ("role", "hourly_wage", "is_active")
PROFILE_FIELDS = ("first_name", "last_name", "phone")


async def resolve_firebase_uid(email: str, display_name: Optional[str] = None) -> str:
    """Firebase uid for an email; the Firebase account is created when missing.

    The new member signs in through the normal Firebase password reset flow.
    """
    init_firebase()
    try:
        return auth.get_user_by_email(email).uid
    except auth.UserNotFoundError:
        record = auth.create_user(email=email, display_name=display_name or None)
        logger.info("Created Firebase account for %s", email)
        return record.uid


class MemberService:
    def __init__(self, db: AsyncSession, current_user: AuthenticatedUser):
        self.db = db
        self.current_user = current_user
        self.company_id = current_user.company_id
        self.activity = ActivityService.for_user(db, current_user)

    async def get(self, user_id: UUID) -> CompanyMembership:
        result = await self.db.execute(
            select(CompanyMembership)
            .options(selectinload(CompanyMembership.user))
            .where(
                CompanyMembership.company_id == self.company_id,
                CompanyMembership.user_id == user_id,
            )
        )
        membership = result.scalar_one_or_none()
        if membership is None:
            raise NotFound("Member not found")
        return membership

    async def list_members(self, include_inactive: bool = False) -> list[CompanyMembership]:
        query = (
            select(CompanyMembership)
            .options(selectinload(CompanyMembership.user))
            .where(CompanyMembership.company_id == self.company_id)
            .order_by(CompanyMembership.created_at)
        )
        if not include_inactive:
            query = query.where(CompanyMembership.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def add(self, data: MemberCreate) -> CompanyMembership:
        """Create or link the user for ``data.email`` and give them a role here."""
        email = data.email.strip().lower()
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is not None:
            existing = await self.db.execute(
                select(CompanyMembership).where(CompanyMembership.user_id == user.id)
            )
            current = existing.scalar_one_or_none()
            if current is not None:
                if current.company_id == self.company_id:
                    raise Conflict(f"{email} is already a member of this company; reactivate them instead")
                raise Conflict(f"{email} already belongs to another company")
            for field in PROFILE_FIELDS:
                value = getattr(data, field)
                if value and not getattr(user, field):
                    setattr(user, field, value)
        else:
            name = " ".join(p for p in (data.first_name, data.last_name) if p)
            uid = await resolve_firebase_uid(email, name)
            user = User(
                firebase_uid=uid,
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
            )
            self.db.add(user)
            await self.db.flush()

        membership = CompanyMembership(
            company_id=self.company_id,
            user=user,
            role=data.role,
            hourly_wage=data.hourly_wage,
        )
        self.db.add(membership)
        await self.db.flush()

        await self.activity.log(
            ActivityAction.USER_CREATED,
            f"Added {user.display_name} as {data.role.value}",
            entity_type="user",
            entity_id=user.id,
            entity_name=user.display_name,
            details={"role": data.role.value, "hourly_wage": str(data.hourly_wage) if data.hourly_wage is not None else None},
        )
        await self.db.commit()
        return await self.get(user.id)

    def _guard_self(self, user_id: UUID, changes: dict[str, Any]) -> None:
        if user_id != self.current_user.db_user_id:
            return
        errors = {}
        if "role" in changes and changes["role"] != self.current_user.role:
            errors["role"] = "You cannot change your own role"
        if changes.get("is_active") is False:
            errors["is_active"] = "You cannot deactivate yourself"
        if errors:
            raise ValidationFailed(errors, "Invalid member update")

    async def update(self, user_id: UUID, data: MemberUpdate) -> CompanyMembership:
        changes = data.model_dump(exclude_unset=True)
        for field in ("role", "is_active"):
            if field in changes and changes[field] is None:
                del changes[field]
        self._guard_self(user_id, changes)
        membership = await self.get(user_id)

        for field, value in changes.items():
            target = membership if field in MEMBERSHIP_FIELDS else membership.user
            setattr(target, field, value)

        await self.activity.log(
            ActivityAction.USER_UPDATED,
            f"Updated member {membership.user.display_name} ({', '.join(sorted(changes)) or 'no changes'})",
            entity_type="user",
            entity_id=user_id,
            entity_name=membership.user.display_name,
            details=jsonable_encoder(changes),
        )
        await self.db.commit()
        return await self.get(user_id)

    async def deactivate(self, user_id: UUID) -> CompanyMembership:
        """Revoke access. The row stays so jobs, receipts and payroll keep their cleaner."""
        self._guard_self(user_id, {"is_active": False})
        membership = await self.get(user_id)
        if not membership.is_active:
            return membership

        membership.is_active = False
        await self.activity.log(
            ActivityAction.USER_DELETED,
            f"Deactivated member {membership.user.display_name}",
            entity_type="user",
            entity_id=user_id,
            entity_name=membership.user.display_name,
            details={"role": membership.role.value},
        )
        await self.db.commit()
        logger.info("Member %s deactivated in company %s", user_id, self.company_id)
        return membership
