"""Invoices router - generation from completed jobs and invoice workflow."""

import io
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.errors import NotFound
from cleansuite.core.security import AuthenticatedUser, require_admin, require_admin_or_manager
from cleansuite.models.client import Client, ClientLocation
from cleansuite.models.company import Company
from cleansuite.models.enums import ActivityAction, InvoiceStatus
from cleansuite.models.invoice import Invoice
from cleansuite.schemas.invoice import (
    InvoiceGenerateRequest,
    InvoiceGenerateResponse,
    InvoiceMarkPaid,
    InvoiceResponse,
    PendingJobResponse,
)
from cleansuite.services.activity import ActivityService
from cleansuite.services.company_config import load_primary_color
from cleansuite.services.invoicing import InvoiceService, change_invoice_status
from cleansuite.services.notifications import NotificationService
from cleansuite.services.pdf_generator import company_context, get_pdf_generator

router = APIRouter(prefix="/invoices", tags=["invoices"])

STATUS_ACTIONS = {
    InvoiceStatus.SENT: ActivityAction.INVOICE_SENT,
    InvoiceStatus.PAID: ActivityAction.INVOICE_PAID,
    InvoiceStatus.CANCELLED: ActivityAction.INVOICE_CANCELLED,
}


async def _get_invoice(db: AsyncSession, current_user: AuthenticatedUser, invoice_id: UUID) -> Invoice:
    result = await db.execute(
        select(Invoice).where(
            Invoice.id == invoice_id,
            Invoice.company_id == current_user.company_id,
        )
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise NotFound("Invoice not found")
    return invoice


@router.get("/pending", response_model=List[PendingJobResponse])
async def pending_jobs(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Completed jobs with no invoice yet."""
    jobs = await InvoiceService(db, current_user.company_id).pending_jobs()
    return [
        PendingJobResponse(
            job_id=job.id,
            client_id=job.client_id,
            client_name=job.client.name,
            cleaner_name=job.cleaner.display_name if job.cleaner else None,
            service_date=job.scheduled_date,
            service_duration=job.service_duration,
            payment_method=job.payment_method,
            payment_amount=job.payment_amount,
        )
        for job in jobs
    ]


@router.post("/generate", response_model=InvoiceGenerateResponse)
async def generate_invoices(
    data: InvoiceGenerateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Generate invoices for the selected completed jobs.

    Cash-paid and already-invoiced jobs are skipped. Running the same batch
    twice creates nothing the second time.
    """
    service = InvoiceService(
        db,
        current_user.company_id,
        activity=ActivityService.for_user(db, current_user),
        notifications=NotificationService(db, current_user.company_id),
    )
    batch = await service.generate(data.job_ids)
    return InvoiceGenerateResponse(
        created=batch.created,
        skipped=batch.skipped,
        failed=batch.failed,
        invoice_ids=batch.invoice_ids,
        message=batch.message,
    )


@router.get("", response_model=List[InvoiceResponse])
async def list_invoices(
    invoice_status: Optional[InvoiceStatus] = None,
    client_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    query = (
        select(Invoice)
        .where(Invoice.company_id == current_user.company_id)
        .order_by(Invoice.created_at.desc())
    )
    if invoice_status:
        query = query.where(Invoice.status == invoice_status)
    if client_id:
        query = query.where(Invoice.client_id == client_id)

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return await _get_invoice(db, current_user, invoice_id)


async def _change_status(
    db: AsyncSession,
    current_user: AuthenticatedUser,
    invoice: Invoice,
    target: InvoiceStatus,
    details: Optional[dict] = None,
) -> Invoice:
    previous = invoice.status
    change_invoice_status(invoice, target)

    await ActivityService.for_user(db, current_user).log(
        STATUS_ACTIONS[target],
        f"Invoice {invoice.invoice_number} marked {target.value}",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_name=invoice.invoice_number,
        details={"from": previous.value, "to": target.value, **(details or {})},
    )
    await db.commit()
    await db.refresh(invoice)
    return invoice


@router.post("/{invoice_id}/send", response_model=InvoiceResponse)
async def send_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    invoice = await _get_invoice(db, current_user, invoice_id)
    return await _change_status(db, current_user, invoice, InvoiceStatus.SENT)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
async def mark_invoice_paid(
    invoice_id: UUID,
    data: InvoiceMarkPaid,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Record payment. Amount defaults to the invoice total, date to today."""
    invoice = await _get_invoice(db, current_user, invoice_id)
    invoice.payment_method = data.payment_method
    invoice.payment_amount = data.payment_amount or invoice.total
    invoice.payment_date = data.payment_date or datetime.utcnow().date()
    invoice.payment_reference = data.payment_reference
    return await _change_status(
        db,
        current_user,
        invoice,
        InvoiceStatus.PAID,
        details={"payment_method": data.payment_method.value, "amount": str(invoice.payment_amount)},
    )


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    invoice = await _get_invoice(db, current_user, invoice_id)
    return await _change_status(db, current_user, invoice, InvoiceStatus.CANCELLED)


@router.get("/{invoice_id}/pdf")
async def invoice_pdf(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Render the invoice as a PDF."""
    invoice = await _get_invoice(db, current_user, invoice_id)
    company = await db.get(Company, current_user.company_id)
    client = await db.get(Client, invoice.client_id)
    location = await db.get(ClientLocation, invoice.location_id) if invoice.location_id else None

    payload = {
        column.name: getattr(invoice, column.name) for column in Invoice.__table__.columns
    }
    payload["client_name"] = client.name if client else None
    if location:
        payload["location"] = ", ".join(p for p in (location.address, location.city) if p)

    generator = get_pdf_generator(await load_primary_color(db, current_user.company_id))
    pdf_bytes = generator.generate_invoice(company_context(company), payload)

    headers = {"Content-Disposition": f'inline; filename="{invoice.invoice_number}.pdf"'}
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=headers)
