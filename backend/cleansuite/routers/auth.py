"""Auth router - current user and company registration."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.security import AuthenticatedUser, get_current_user
from cleansuite.models.company import (
    Company,
    CompanyBranding,
    CompanyEstimateConfig,
    CompanyMembership,
)
from cleansuite.models.enums import ActivityAction, CompanyRole, Province
from cleansuite.models.user import User
from cleansuite.schemas.auth import MeResponse
from cleansuite.schemas.base import BaseSchema
from cleansuite.services.activity import ActivityService

router = APIRouter(prefix="/auth", tags=["auth"])


class CompanyRegistration(BaseSchema):
    trade_name: str = Field(..., min_length=2, max_length=255)
    province: Province = Province.ON
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


def _me(current_user: AuthenticatedUser) -> MeResponse:
    return MeResponse(
        uid=current_user.uid,
        email=current_user.email,
        user_id=current_user.db_user_id,
        display_name=current_user.display_name,
        company_id=current_user.company_id,
        role=current_user.role,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: AuthenticatedUser = Depends(get_current_user)):
    """Get the current user and their company role."""
    return _me(current_user)


@router.post("/register", response_model=MeResponse, status_code=status.HTTP_201_CREATED)
async def register_company(
    data: CompanyRegistration,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Create a company with the caller as its admin.

    A user can belong to one company only.
    """
    if current_user.company_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already belongs to a company",
        )
    if not current_user.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A verified email is required to register a company",
        )

    user = await db.get(User, current_user.db_user_id) if current_user.db_user_id else None
    if user is not None:
        # deactivated members keep their row and cannot start a second company
        existing = await db.execute(
            select(CompanyMembership.id).where(CompanyMembership.user_id == user.id)
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User already belongs to a company",
            )
    else:
        user = User(
            firebase_uid=current_user.uid,
            email=current_user.email,
            first_name=data.first_name,
            last_name=data.last_name,
        )
        db.add(user)
        await db.flush()

    company = Company(trade_name=data.trade_name, province=data.province, email=current_user.email)
    db.add(company)
    await db.flush()

    db.add(CompanyMembership(company_id=company.id, user_id=user.id, role=CompanyRole.ADMIN))
    db.add(CompanyEstimateConfig(company_id=company.id))
    db.add(CompanyBranding(company_id=company.id))

    current_user.db_user_id = user.id
    current_user.display_name = user.display_name
    current_user.company_id = company.id
    current_user.role = CompanyRole.ADMIN

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.COMPANY_CREATED,
        f"Registered company {company.trade_name}",
        entity_type="company",
        entity_id=company.id,
        entity_name=company.trade_name,
    )
    await db.commit()

    return _me(current_user)
