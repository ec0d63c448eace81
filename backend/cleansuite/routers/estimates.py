"""Estimates router - quoting, persistence, status workflow and scheduling."""

import io
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import LIKE_ESCAPE, contains_pattern, get_db
from cleansuite.core.errors import InvalidTransition, NotFound
from cleansuite.core.security import AuthenticatedUser, require_admin_or_manager
from cleansuite.models.company import Company
from cleansuite.models.enums import ActivityAction, EstimateStatus
from cleansuite.models.estimate import Estimate
from cleansuite.routers.jobs import job_response
from cleansuite.schemas.estimate import (
    EstimateCreate,
    EstimateResponse,
    EstimateSchedule,
    EstimateUpdate,
    PropertyDetails,
    QuoteResponse,
)
from cleansuite.schemas.job import JobResponse
from cleansuite.services.activity import ActivityService
from cleansuite.services.company_config import (
    EXTRA_FEE_NAMES,
    fees_from_snapshot,
    load_company_config,
    load_primary_color,
)
from cleansuite.services.estimates import (
    EXTRA_FLAGS,
    check_editable,
    pricing_input_from,
    recalculate_total,
    transition,
)
from cleansuite.services.pdf_generator import company_context, get_pdf_generator
from cleansuite.services.pricing import calculate_breakdown
from cleansuite.services.scheduling import create_job, get_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/estimates", tags=["estimates"])

STATUS_ACTIONS = {
    EstimateStatus.SENT: ActivityAction.ESTIMATE_SENT,
    EstimateStatus.ACCEPTED: ActivityAction.ESTIMATE_ACCEPTED,
    EstimateStatus.REJECTED: ActivityAction.ESTIMATE_REJECTED,
}


async def _get_estimate(db: AsyncSession, current_user: AuthenticatedUser, estimate_id: UUID) -> Estimate:
    result = await db.execute(
        select(Estimate).where(
            Estimate.id == estimate_id,
            Estimate.company_id == current_user.company_id,
        )
    )
    estimate = result.scalar_one_or_none()
    if not estimate:
        raise NotFound("Estimate not found")
    return estimate


@router.post("/quote", response_model=QuoteResponse)
async def quote(
    data: PropertyDetails,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Live price preview with the company's current rates. Nothing is stored."""
    config = await load_company_config(db, current_user.company_id)
    breakdown = calculate_breakdown(pricing_input_from(data), config.hourly_rate, config.extra_fees)
    return QuoteResponse(
        hourly_rate=config.hourly_rate,
        base_hours=round(breakdown.base_hours, 2),
        room_hours=round(breakdown.room_hours, 2),
        total_hours=round(breakdown.total_hours, 2),
        base_price=round(breakdown.base_price, 2),
        extras_total=round(breakdown.extras_total, 2),
        total=breakdown.total,
    )


@router.post("", response_model=EstimateResponse, status_code=status.HTTP_201_CREATED)
async def create_estimate(
    data: EstimateCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Create a draft estimate, snapshotting the current hourly rate and extra fees."""
    config = await load_company_config(db, current_user.company_id)

    estimate = Estimate(
        company_id=current_user.company_id,
        created_by_id=current_user.db_user_id,
        hourly_rate=config.hourly_rate,
        fee_snapshot=config.fee_snapshot(),
        status=EstimateStatus.DRAFT,
        **data.model_dump(),
    )
    recalculate_total(estimate)
    db.add(estimate)
    await db.flush()

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.ESTIMATE_CREATED,
        f"Created estimate for {estimate.client_name} (${estimate.total_amount})",
        entity_type="estimate",
        entity_id=estimate.id,
        entity_name=estimate.client_name,
        details={"total_amount": estimate.total_amount, "service_type": estimate.service_type.value},
    )
    await db.commit()
    await db.refresh(estimate)
    return estimate


@router.get("", response_model=List[EstimateResponse])
async def list_estimates(
    estimate_status: Optional[EstimateStatus] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    query = (
        select(Estimate)
        .where(Estimate.company_id == current_user.company_id)
        .order_by(Estimate.created_at.desc())
    )
    if estimate_status:
        query = query.where(Estimate.status == estimate_status)
    if search:
        query = query.where(Estimate.client_name.ilike(contains_pattern(search.strip()), escape=LIKE_ESCAPE))

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{estimate_id}", response_model=EstimateResponse)
async def get_estimate(
    estimate_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return await _get_estimate(db, current_user, estimate_id)


@router.patch("/{estimate_id}", response_model=EstimateResponse)
async def update_estimate(
    estimate_id: UUID,
    data: EstimateUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Edit a draft or sent estimate. The total is recomputed from its own snapshots."""
    estimate = await _get_estimate(db, current_user, estimate_id)
    check_editable(estimate)

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(estimate, field, value)
    previous_total = estimate.total_amount
    recalculate_total(estimate)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.ESTIMATE_UPDATED,
        f"Updated estimate for {estimate.client_name}",
        entity_type="estimate",
        entity_id=estimate.id,
        entity_name=estimate.client_name,
        details={
            "fields": sorted(changes),
            "previous_total": previous_total,
            "total_amount": estimate.total_amount,
        },
    )
    await db.commit()
    await db.refresh(estimate)
    return estimate


async def _change_status(
    db: AsyncSession,
    current_user: AuthenticatedUser,
    estimate_id: UUID,
    target: EstimateStatus,
) -> Estimate:
    estimate = await _get_estimate(db, current_user, estimate_id)
    previous = estimate.status
    transition(estimate, target)

    await ActivityService.for_user(db, current_user).log(
        STATUS_ACTIONS[target],
        f"Estimate for {estimate.client_name} marked {target.value}",
        entity_type="estimate",
        entity_id=estimate.id,
        entity_name=estimate.client_name,
        details={"from": previous.value, "to": target.value},
    )
    await db.commit()
    await db.refresh(estimate)
    return estimate


@router.post("/{estimate_id}/send", response_model=EstimateResponse)
async def send_estimate(
    estimate_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return await _change_status(db, current_user, estimate_id, EstimateStatus.SENT)


@router.post("/{estimate_id}/accept", response_model=EstimateResponse)
async def accept_estimate(
    estimate_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return await _change_status(db, current_user, estimate_id, EstimateStatus.ACCEPTED)


@router.post("/{estimate_id}/reject", response_model=EstimateResponse)
async def reject_estimate(
    estimate_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return await _change_status(db, current_user, estimate_id, EstimateStatus.REJECTED)


@router.delete("/{estimate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_estimate(
    estimate_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Delete an estimate that was never accepted."""
    estimate = await _get_estimate(db, current_user, estimate_id)
    if estimate.status == EstimateStatus.ACCEPTED:
        raise InvalidTransition(
            "estimate",
            estimate.status.value,
            "deleted",
            message="Accepted estimates cannot be deleted",
        )

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.ESTIMATE_DELETED,
        f"Deleted estimate for {estimate.client_name}",
        entity_type="estimate",
        entity_id=estimate.id,
        entity_name=estimate.client_name,
        details={"status": estimate.status.value, "total_amount": estimate.total_amount},
    )
    await db.delete(estimate)
    await db.commit()


@router.post("/{estimate_id}/schedule", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def schedule_estimate(
    estimate_id: UUID,
    data: EstimateSchedule,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Create a scheduled job from an accepted estimate.

    Without an explicit duration the job gets the estimated cleaning hours.
    """
    estimate = await _get_estimate(db, current_user, estimate_id)
    if estimate.status != EstimateStatus.ACCEPTED:
        raise InvalidTransition(
            "estimate",
            estimate.status.value,
            "scheduled",
            message="Only accepted estimates can be scheduled",
        )

    duration_minutes = data.duration_minutes
    if duration_minutes is None:
        breakdown = calculate_breakdown(
            pricing_input_from(estimate),
            estimate.hourly_rate,
            fees_from_snapshot(estimate.fee_snapshot),
        )
        duration_minutes = max(int(round(breakdown.total_hours * 60)), 30)

    job = await create_job(
        db,
        current_user,
        client_id=data.client_id,
        location_id=data.location_id,
        cleaner_id=data.cleaner_id,
        scheduled_date=data.scheduled_date,
        start_time=data.start_time,
        duration_minutes=duration_minutes,
        job_type=estimate.service_type.value,
        notes=estimate.notes,
        estimate_id=estimate.id,
    )
    await db.commit()

    return job_response(await get_job(db, current_user, job.id))


@router.get("/{estimate_id}/pdf")
async def estimate_pdf(
    estimate_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Render the estimate as a PDF."""
    estimate = await _get_estimate(db, current_user, estimate_id)
    company = await db.get(Company, current_user.company_id)
    fees = fees_from_snapshot(estimate.fee_snapshot)

    payload = {
        column.name: getattr(estimate, column.name) for column in Estimate.__table__.columns
    }
    payload["extras"] = [
        (EXTRA_FEE_NAMES[kind], fees.get(kind, 0))
        for flag, kind in EXTRA_FLAGS.items()
        if getattr(estimate, flag)
    ]

    generator = get_pdf_generator(await load_primary_color(db, current_user.company_id))
    pdf_bytes = generator.generate_estimate(company_context(company), payload)
    logger.info("Rendered estimate %s PDF (%d bytes)", estimate.id, len(pdf_bytes))

    headers = {"Content-Disposition": f'inline; filename="estimate_{str(estimate.id)[:8]}.pdf"'}
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=headers)
