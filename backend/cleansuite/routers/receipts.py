"""Receipts router - payment receipts issued at job completion."""

import io
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.errors import NotFound, PermissionDenied
from cleansuite.core.security import AuthenticatedUser, require_company_member
from cleansuite.models.client import Client, ClientLocation
from cleansuite.models.company import Company
from cleansuite.models.enums import PaymentMethod
from cleansuite.models.job import Job
from cleansuite.models.payment import PaymentReceipt
from cleansuite.models.user import User
from cleansuite.schemas.invoice import ReceiptResponse
from cleansuite.services.company_config import load_primary_color
from cleansuite.services.pdf_generator import company_context, get_pdf_generator

router = APIRouter(prefix="/receipts", tags=["receipts"])


def _receipt_query():
    return (
        select(PaymentReceipt, Client.name, User)
        .join(Client, Client.id == PaymentReceipt.client_id)
        .outerjoin(User, User.id == PaymentReceipt.cleaner_id)
    )


def receipt_response(receipt: PaymentReceipt, client_name: Optional[str], cleaner: Optional[User]) -> ReceiptResponse:
    response = ReceiptResponse.model_validate(receipt)
    response.client_name = client_name
    response.cleaner_name = cleaner.display_name if cleaner else None
    return response


async def _get_receipt(db: AsyncSession, current_user: AuthenticatedUser, receipt_id: UUID):
    result = await db.execute(
        _receipt_query().where(
            PaymentReceipt.id == receipt_id,
            PaymentReceipt.company_id == current_user.company_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Receipt not found")
    receipt, client_name, cleaner = row
    if current_user.is_cleaner and receipt.cleaner_id != current_user.db_user_id:
        raise PermissionDenied("This receipt belongs to another cleaner")
    return receipt, client_name, cleaner


@router.get("", response_model=List[ReceiptResponse])
async def list_receipts(
    client_id: Optional[UUID] = None,
    cleaner_id: Optional[UUID] = None,
    payment_method: Optional[PaymentMethod] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """List receipts by client, cleaner and service date. Cleaners see their own."""
    query = (
        _receipt_query()
        .where(PaymentReceipt.company_id == current_user.company_id)
        .order_by(PaymentReceipt.service_date.desc(), PaymentReceipt.created_at.desc())
    )
    if current_user.is_cleaner:
        query = query.where(PaymentReceipt.cleaner_id == current_user.db_user_id)
    elif cleaner_id:
        query = query.where(PaymentReceipt.cleaner_id == cleaner_id)
    if client_id:
        query = query.where(PaymentReceipt.client_id == client_id)
    if payment_method:
        query = query.where(PaymentReceipt.payment_method == payment_method)
    if date_from:
        query = query.where(PaymentReceipt.service_date >= date_from)
    if date_to:
        query = query.where(PaymentReceipt.service_date <= date_to)

    result = await db.execute(query)
    return [receipt_response(*row) for row in result.all()]


@router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(
    receipt_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    return receipt_response(*await _get_receipt(db, current_user, receipt_id))


@router.get("/{receipt_id}/pdf")
async def receipt_pdf(
    receipt_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """Render the receipt as a PDF."""
    receipt, client_name, cleaner = await _get_receipt(db, current_user, receipt_id)
    company = await db.get(Company, current_user.company_id)
    job = await db.get(Job, receipt.job_id)
    location = await db.get(ClientLocation, job.location_id) if job and job.location_id else None

    payload = {
        column.name: getattr(receipt, column.name) for column in PaymentReceipt.__table__.columns
    }
    payload["client_name"] = client_name
    payload["cleaner_name"] = cleaner.display_name if cleaner else None
    if location:
        payload["location"] = ", ".join(p for p in (location.address, location.city) if p)

    generator = get_pdf_generator(await load_primary_color(db, current_user.company_id))
    pdf_bytes = generator.generate_receipt(company_context(company), payload)

    headers = {"Content-Disposition": f'inline; filename="{receipt.receipt_number}.pdf"'}
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=headers)
