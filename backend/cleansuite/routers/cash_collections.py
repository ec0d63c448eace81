"""Cash collections router - review of cash payments received at completion."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.security import AuthenticatedUser, require_admin_or_manager
from cleansuite.models.enums import CompensationStatus
from cleansuite.schemas.cash import (
    CashCollectionResponse,
    CashDisputeRequest,
    CashSettleRequest,
    CashSummaryResponse,
)
from cleansuite.services.cash import CashReconciliationService

router = APIRouter(prefix="/cash-collections", tags=["cash"])


@router.get("", response_model=List[CashCollectionResponse])
async def list_cash_collections(
    compensation_status: Optional[CompensationStatus] = None,
    cleaner_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """List cash collections by status, cleaner and service date."""
    service = CashReconciliationService(db, current_user)
    return await service.list_collections(
        status=compensation_status,
        cleaner_id=cleaner_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/summary", response_model=CashSummaryResponse)
async def cash_summary(
    cleaner_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    totals = await CashReconciliationService(db, current_user).summary(cleaner_id)
    return CashSummaryResponse(**totals)


@router.get("/{collection_id}", response_model=CashCollectionResponse)
async def get_cash_collection(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return await CashReconciliationService(db, current_user).get(collection_id)


@router.post("/{collection_id}/approve", response_model=CashCollectionResponse)
async def approve_cash_collection(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Approve a pending collection. The cleaner is notified."""
    return await CashReconciliationService(db, current_user).approve(collection_id)


@router.post("/{collection_id}/dispute", response_model=CashCollectionResponse)
async def dispute_cash_collection(
    collection_id: UUID,
    data: CashDisputeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Dispute a pending collection. A reason is required."""
    return await CashReconciliationService(db, current_user).dispute(collection_id, data.reason)


@router.post("/{collection_id}/settle", response_model=CashCollectionResponse)
async def settle_cash_collection(
    collection_id: UUID,
    data: CashSettleRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Mark an approved collection as deducted in payroll."""
    return await CashReconciliationService(db, current_user).settle(
        collection_id, data.payroll_period_id
    )
