"""Job lookup and lifecycle helpers shared by routers and services."""

from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleansuite.core.config import get_settings
from cleansuite.core.errors import InvalidTransition, NotFound, PermissionDenied, ValidationFailed
from cleansuite.core.security import AuthenticatedUser
from cleansuite.models.client import Client, ClientLocation
from cleansuite.models.company import CompanyMembership
from cleansuite.models.enums import ActivityAction, ClientStatus, JobStatus
from cleansuite.models.job import Job
from cleansuite.services.activity import ActivityService
from cleansuite.services.notifications import NotificationService

EDITABLE_STATUSES = (JobStatus.SCHEDULED, JobStatus.IN_PROGRESS)


async def get_job(db: AsyncSession, current_user: AuthenticatedUser, job_id: UUID) -> Job:
    """Load a company job with its client, location and cleaner.

    Cleaners can only see jobs assigned to them.
    """
    result = await db.execute(
        select(Job)
        .options(
            selectinload(Job.client),
            selectinload(Job.location),
            selectinload(Job.cleaner),
        )
        .where(Job.id == job_id, Job.company_id == current_user.company_id)
    )
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFound("Job not found")
    if current_user.is_cleaner and job.cleaner_id != current_user.db_user_id:
        raise PermissionDenied("You are not assigned to this job")
    return job


def start_job(job: Job) -> None:
    if job.status != JobStatus.SCHEDULED:
        raise InvalidTransition("job", job.status.value, JobStatus.IN_PROGRESS.value)
    job.status = JobStatus.IN_PROGRESS
    job.started_at = datetime.utcnow()


def cancel_job(job: Job, reason: Optional[str] = None) -> None:
    if job.status not in EDITABLE_STATUSES:
        raise InvalidTransition("job", job.status.value, JobStatus.CANCELLED.value)
    job.status = JobStatus.CANCELLED
    job.cancelled_at = datetime.utcnow()
    job.cancellation_reason = reason


def check_editable(job: Job) -> None:
    if job.status not in EDITABLE_STATUSES:
        raise InvalidTransition(
            "job",
            job.status.value,
            job.status.value,
            message=f"Job is {job.status.value} and can no longer be edited",
        )


def describe_location(job: Job) -> str:
    if job.location is None:
        return "address not set"
    parts = [job.location.address, job.location.city]
    return ", ".join(p for p in parts if p)


async def validate_assignment(
    db: AsyncSession,
    company_id: UUID,
    client_id: Optional[UUID] = None,
    location_id: Optional[UUID] = None,
    cleaner_id: Optional[UUID] = None,
) -> Optional[Client]:
    """Check that client, location and cleaner all belong to the company.

    Returns the client when ``client_id`` is given.
    """
    errors: dict[str, str] = {}
    client = None

    if client_id is not None:
        client = await db.get(Client, client_id)
        if client is None or client.company_id != company_id:
            errors["client_id"] = "Client not found"
            client = None
        elif client.status != ClientStatus.ACTIVE:
            errors["client_id"] = "Client is inactive"

    if location_id is not None:
        location = await db.get(ClientLocation, location_id)
        if location is None or location.company_id != company_id:
            errors["location_id"] = "Location not found"
        elif client_id is not None and location.client_id != client_id:
            errors["location_id"] = "Location does not belong to this client"

    if cleaner_id is not None:
        result = await db.execute(
            select(CompanyMembership.id).where(
                CompanyMembership.company_id == company_id,
                CompanyMembership.user_id == cleaner_id,
                CompanyMembership.is_active.is_(True),
            )
        )
        if result.scalar_one_or_none() is None:
            errors["cleaner_id"] = "Cleaner is not a member of this company"

    if errors:
        raise ValidationFailed(errors, "Invalid job assignment")
    return client


async def create_job(
    db: AsyncSession,
    current_user: AuthenticatedUser,
    *,
    client_id: UUID,
    scheduled_date: date,
    location_id: Optional[UUID] = None,
    cleaner_id: Optional[UUID] = None,
    start_time: Optional[time] = None,
    duration_minutes: Optional[int] = None,
    job_type: str = "standard",
    notes: Optional[str] = None,
    estimate_id: Optional[UUID] = None,
) -> Job:
    """Schedule a job, log it and notify the assigned cleaner. The caller commits."""
    client = await validate_assignment(db, current_user.company_id, client_id, location_id, cleaner_id)

    if duration_minutes is None:
        duration_minutes = int(get_settings().default_job_duration_hours * 60)

    job = Job(
        company_id=current_user.company_id,
        client_id=client_id,
        location_id=location_id,
        cleaner_id=cleaner_id,
        estimate_id=estimate_id,
        job_type=job_type,
        scheduled_date=scheduled_date,
        start_time=start_time,
        duration_minutes=duration_minutes,
        notes=notes,
        status=JobStatus.SCHEDULED,
    )
    db.add(job)
    await db.flush()

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.JOB_CREATED,
        f"Scheduled job for {client.name} on {scheduled_date.isoformat()}",
        entity_type="job",
        entity_id=job.id,
        entity_name=client.name,
        details={
            "scheduled_date": scheduled_date.isoformat(),
            "cleaner_id": str(cleaner_id) if cleaner_id else None,
            "estimate_id": str(estimate_id) if estimate_id else None,
        },
    )

    if cleaner_id:
        address = "address not set"
        if location_id:
            location = await db.get(ClientLocation, location_id)
            address = ", ".join(p for p in (location.address, location.city) if p)
        await NotificationService(db, current_user.company_id).job_created(
            cleaner_id=cleaner_id,
            client_name=client.name,
            scheduled_date=scheduled_date.isoformat(),
            start_time=start_time.strftime("%H:%M") if start_time else "a time to be confirmed",
            address=address,
            job_id=job.id,
        )
    return job
