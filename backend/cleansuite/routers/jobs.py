"""Jobs router - scheduling, execution and completion."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleansuite.core.database import get_db
from cleansuite.core.security import AuthenticatedUser, require_admin_or_manager, require_company_member
from cleansuite.models.enums import ActivityAction, JobStatus
from cleansuite.models.job import Job
from cleansuite.schemas.base import PresignResponse
from cleansuite.schemas.job import (
    CashCollectionSummary,
    ChecklistEntry,
    ChecklistTemplateResponse,
    InvoiceOutcome,
    JobCancel,
    JobCompletionRequest,
    JobCompletionResponse,
    JobCreate,
    JobResponse,
    JobUpdate,
    PhotoPresignRequest,
    ReceiptSummary,
)
from cleansuite.services.activity import ActivityService
from cleansuite.services.company_config import load_checklist_template
from cleansuite.services.completion import CompletionService
from cleansuite.services.notifications import NotificationService
from cleansuite.services.scheduling import (
    cancel_job,
    check_editable,
    create_job,
    describe_location,
    get_job,
    start_job,
    validate_assignment,
)
from cleansuite.services.storage import get_storage_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


def job_response(job: Job) -> JobResponse:
    response = JobResponse.model_validate(job)
    response.client_name = job.client.name if job.client else None
    return response


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def schedule_job(
    data: JobCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Schedule a job and notify the assigned cleaner."""
    job = await create_job(db, current_user, **data.model_dump())
    await db.commit()
    return job_response(await get_job(db, current_user, job.id))


@router.get("", response_model=List[JobResponse])
async def list_jobs(
    job_status: Optional[JobStatus] = None,
    cleaner_id: Optional[UUID] = None,
    client_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """List jobs. Cleaners only ever see their own."""
    query = (
        select(Job)
        .options(selectinload(Job.client))
        .where(Job.company_id == current_user.company_id)
        .order_by(Job.scheduled_date, Job.start_time)
    )
    if current_user.is_cleaner:
        query = query.where(Job.cleaner_id == current_user.db_user_id)
    elif cleaner_id:
        query = query.where(Job.cleaner_id == cleaner_id)
    if job_status:
        query = query.where(Job.status == job_status)
    if client_id:
        query = query.where(Job.client_id == client_id)
    if date_from:
        query = query.where(Job.scheduled_date >= date_from)
    if date_to:
        query = query.where(Job.scheduled_date <= date_to)

    result = await db.execute(query)
    return [job_response(job) for job in result.scalars().all()]


@router.get("/{job_id}", response_model=JobResponse)
async def read_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    return job_response(await get_job(db, current_user, job_id))


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: UUID,
    data: JobUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Reschedule or reassign a job that has not finished."""
    job = await get_job(db, current_user, job_id)
    check_editable(job)

    changes = data.model_dump(exclude_unset=True)
    await validate_assignment(
        db,
        current_user.company_id,
        client_id=job.client_id,
        location_id=changes.get("location_id"),
        cleaner_id=changes.get("cleaner_id"),
    )

    previous_cleaner = job.cleaner_id
    for field, value in changes.items():
        setattr(job, field, value)

    client_name = job.client.name
    summary = ", ".join(sorted(changes)) or "no changes"
    await ActivityService.for_user(db, current_user).log(
        ActivityAction.JOB_UPDATED,
        f"Updated job for {client_name} ({summary})",
        entity_type="job",
        entity_id=job.id,
        entity_name=client_name,
        details={k: str(v) if v is not None else None for k, v in changes.items()},
    )

    notifications = NotificationService(db, current_user.company_id)
    if job.cleaner_id and job.cleaner_id != previous_cleaner:
        await db.flush()
        await db.refresh(job, ["location"])
        await notifications.job_created(
            cleaner_id=job.cleaner_id,
            client_name=client_name,
            scheduled_date=job.scheduled_date.isoformat(),
            start_time=job.start_time.strftime("%H:%M") if job.start_time else "a time to be confirmed",
            address=describe_location(job),
            job_id=job.id,
        )
    elif job.cleaner_id and changes:
        await notifications.job_updated(job.cleaner_id, client_name, summary, job.id)

    await db.commit()
    return job_response(await get_job(db, current_user, job_id))


@router.post("/{job_id}/start", response_model=JobResponse)
async def begin_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    job = await get_job(db, current_user, job_id)
    start_job(job)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.JOB_STARTED,
        f"Started job for {job.client.name}",
        entity_type="job",
        entity_id=job.id,
        entity_name=job.client.name,
    )
    await db.commit()
    return job_response(job)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel(
    job_id: UUID,
    data: JobCancel,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Cancel a job and notify its cleaner."""
    job = await get_job(db, current_user, job_id)
    cancel_job(job, data.reason)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.JOB_CANCELLED,
        f"Cancelled job for {job.client.name} on {job.scheduled_date.isoformat()}",
        entity_type="job",
        entity_id=job.id,
        entity_name=job.client.name,
        details={"reason": data.reason},
    )
    if job.cleaner_id:
        await NotificationService(db, current_user.company_id).job_cancelled(
            job.cleaner_id, job.client.name, job.scheduled_date.isoformat(), job.id
        )
    await db.commit()
    return job_response(job)


# === Completion ===

@router.get("/{job_id}/checklist", response_model=ChecklistTemplateResponse)
async def checklist_template(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """Checklist the cleaner fills in at completion."""
    await get_job(db, current_user, job_id)
    names = await load_checklist_template(db, current_user.company_id)
    return ChecklistTemplateResponse(items=[ChecklistEntry(item=name) for name in names])


@router.post("/{job_id}/photos/presign", response_model=PresignResponse)
async def presign_photo_upload(
    job_id: UUID,
    data: PhotoPresignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """Get a presigned URL for a before/after photo."""
    job = await get_job(db, current_user, job_id)
    check_editable(job)

    upload = await get_storage_service().create_presigned_upload(
        company_id=current_user.company_id,
        entity=f"jobs/{job.id}",
        purpose=data.purpose.value,
        mime_type=data.mime_type,
        file_size_bytes=data.file_size_bytes,
    )
    return PresignResponse(**upload._asdict())


@router.post("/{job_id}/complete", response_model=JobCompletionResponse)
async def complete_job(
    job_id: UUID,
    data: JobCompletionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """Complete a job with photos, checklist and the mandatory payment record.

    In automatic invoicing mode, non-cash completions are invoiced right away;
    the outcome is reported in ``invoice``.
    """
    job = await get_job(db, current_user, job_id)
    result = await CompletionService(db, current_user).complete(
        job,
        payment_method=data.payment.method,
        payment_amount=data.payment.amount,
        payment_received_by=data.payment.received_by,
        checklist=data.checklist,
        before_photos=data.before_photos,
        after_photos=data.after_photos,
        notes=data.notes,
        payment_date=data.payment.payment_date,
        payment_reference=data.payment.reference,
        payment_notes=data.payment.notes,
    )

    response = JobCompletionResponse(job=job_response(await get_job(db, current_user, job_id)))
    if result.receipt is not None:
        await db.refresh(result.receipt)
        response.receipt = ReceiptSummary.model_validate(result.receipt)
    if result.cash_collection is not None:
        await db.refresh(result.cash_collection)
        response.cash_collection = CashCollectionSummary.model_validate(result.cash_collection)
    if result.invoice_result is not None:
        outcome = result.invoice_result
        response.invoice = InvoiceOutcome(
            created=outcome.created,
            skipped=outcome.skipped,
            failed=outcome.failed,
            invoice_ids=outcome.invoice_ids,
            message=outcome.message,
        )
    return response
