"""Company router - profile, members, pricing configuration, checklist catalog and branding."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.security import (
    AuthenticatedUser,
    require_admin,
    require_admin_or_manager,
    require_company_member,
)
from cleansuite.models.company import (
    ChecklistItem,
    Company,
    CompanyBranding,
    CompanyEstimateConfig,
    CompanyExtraFee,
    CompanyMembership,
)
from cleansuite.models.enums import ActivityAction, ExtraKind
from cleansuite.schemas.base import PresignRequest, PresignResponse
from cleansuite.schemas.company import (
    BrandingResponse,
    BrandingUpdate,
    ChecklistItemCreate,
    ChecklistItemResponse,
    ChecklistItemUpdate,
    ChecklistOrderUpdate,
    CompanyResponse,
    CompanyUpdate,
    EstimateConfigResponse,
    EstimateConfigUpdate,
    ExtraFeeResponse,
    ExtraFeeUpdate,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
)
from cleansuite.services.activity import ActivityService
from cleansuite.services.company_config import DEFAULT_EXTRA_FEES, EXTRA_FEE_NAMES, load_company_config
from cleansuite.services.members import MemberService
from cleansuite.services.storage import get_storage_service

router = APIRouter(prefix="/company", tags=["company"])


async def get_company(db: AsyncSession, current_user: AuthenticatedUser) -> Company:
    company = await db.get(Company, current_user.company_id)
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


async def get_or_create_branding(db: AsyncSession, current_user: AuthenticatedUser) -> CompanyBranding:
    result = await db.execute(
        select(CompanyBranding).where(CompanyBranding.company_id == current_user.company_id)
    )
    branding = result.scalar_one_or_none()
    if branding is None:
        branding = CompanyBranding(company_id=current_user.company_id)
        db.add(branding)
        await db.flush()
    return branding


# === Profile ===

@router.get("", response_model=CompanyResponse)
async def read_company(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """Get the current user's company."""
    return await get_company(db, current_user)


@router.patch("", response_model=CompanyResponse)
async def update_company(
    data: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Update the company profile."""
    company = await get_company(db, current_user)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(company, field, value)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.COMPANY_UPDATED,
        f"Updated company profile ({', '.join(sorted(changes)) or 'no changes'})",
        entity_type="company",
        entity_id=company.id,
        entity_name=company.trade_name,
        details={"fields": sorted(changes)},
    )
    await db.commit()
    await db.refresh(company)
    return company


def member_response(membership: CompanyMembership) -> MemberResponse:
    return MemberResponse(
        user_id=membership.user_id,
        email=membership.user.email,
        full_name=membership.user.display_name,
        role=membership.role,
        hourly_wage=membership.hourly_wage,
        phone=membership.user.phone,
        is_active=membership.is_active,
    )


# === Members ===

@router.get("/members", response_model=List[MemberResponse])
async def list_members(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """List company members and their roles."""
    members = await MemberService(db, current_user).list_members(include_inactive=include_inactive)
    return [member_response(m) for m in members]


@router.post("/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    data: MemberCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Add a member by email, creating their account when it does not exist."""
    return member_response(await MemberService(db, current_user).add(data))


@router.patch("/members/{user_id}", response_model=MemberResponse)
async def update_member(
    user_id: UUID,
    data: MemberUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return member_response(await MemberService(db, current_user).update(user_id, data))


@router.delete("/members/{user_id}", response_model=MemberResponse)
async def deactivate_member(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Deactivate a member. History stays attached to them."""
    return member_response(await MemberService(db, current_user).deactivate(user_id))


# === Estimate configuration ===

@router.get("/estimate-config", response_model=EstimateConfigResponse)
async def read_estimate_config(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """Effective pricing configuration, defaults included."""
    config = await load_company_config(db, current_user.company_id)
    return EstimateConfigResponse(
        default_hourly_rate=config.hourly_rate,
        tax_rate=config.tax_rate,
        invoice_generation_mode=config.invoice_mode,
        auto_generate_cash_receipt=config.auto_generate_cash_receipt,
    )


@router.patch("/estimate-config", response_model=EstimateConfigResponse)
async def update_estimate_config(
    data: EstimateConfigUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Change rates and invoice mode. Existing estimates and invoices keep their snapshots."""
    result = await db.execute(
        select(CompanyEstimateConfig).where(CompanyEstimateConfig.company_id == current_user.company_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = CompanyEstimateConfig(company_id=current_user.company_id)
        db.add(row)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(row, field, value)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        "Updated estimate and invoice settings",
        entity_type="company_estimate_config",
        details={k: str(v) for k, v in changes.items()},
    )
    await db.commit()
    return await read_estimate_config(db, current_user)


@router.get("/extra-fees", response_model=List[ExtraFeeResponse])
async def list_extra_fees(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """All seven extras; ones never configured show their default fee."""
    result = await db.execute(
        select(CompanyExtraFee).where(CompanyExtraFee.company_id == current_user.company_id)
    )
    stored = {fee.kind: fee for fee in result.scalars().all()}
    fees = []
    for kind in ExtraKind:
        fee = stored.get(kind)
        if fee:
            fees.append(ExtraFeeResponse.model_validate(fee))
        else:
            fees.append(ExtraFeeResponse(
                kind=kind,
                name=EXTRA_FEE_NAMES[kind],
                amount=DEFAULT_EXTRA_FEES[kind],
                is_active=True,
            ))
    return fees


@router.put("/extra-fees/{kind}", response_model=ExtraFeeResponse)
async def upsert_extra_fee(
    kind: ExtraKind,
    data: ExtraFeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Set the amount and active flag of one extra."""
    result = await db.execute(
        select(CompanyExtraFee).where(
            CompanyExtraFee.company_id == current_user.company_id,
            CompanyExtraFee.kind == kind,
        )
    )
    fee = result.scalar_one_or_none()
    if fee is None:
        fee = CompanyExtraFee(company_id=current_user.company_id, kind=kind, name=EXTRA_FEE_NAMES[kind])
        db.add(fee)

    fee.amount = data.amount
    fee.is_active = data.is_active
    if data.name:
        fee.name = data.name

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        f"Set {fee.name} fee to ${data.amount:.2f}" + ("" if data.is_active else " (inactive)"),
        entity_type="company_extra_fee",
        entity_name=kind.value,
        details={"amount": str(data.amount), "is_active": data.is_active},
    )
    await db.commit()
    await db.refresh(fee)
    return fee


# === Checklist catalog ===

@router.get("/checklist-items", response_model=List[ChecklistItemResponse])
async def list_checklist_items(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    query = (
        select(ChecklistItem)
        .where(ChecklistItem.company_id == current_user.company_id)
        .order_by(ChecklistItem.display_order, ChecklistItem.created_at)
    )
    if not include_inactive:
        query = query.where(ChecklistItem.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/checklist-items", response_model=ChecklistItemResponse, status_code=status.HTTP_201_CREATED)
async def create_checklist_item(
    data: ChecklistItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Add a checklist item at the end of the list."""
    result = await db.execute(
        select(func.max(ChecklistItem.display_order)).where(
            ChecklistItem.company_id == current_user.company_id
        )
    )
    max_order = result.scalar_one_or_none()

    item = ChecklistItem(
        company_id=current_user.company_id,
        name=data.name,
        description=data.description,
        display_order=(max_order + 1) if max_order is not None else 0,
    )
    db.add(item)
    await db.flush()

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        f"Added checklist item '{item.name}'",
        entity_type="checklist_item",
        entity_id=item.id,
        entity_name=item.name,
    )
    await db.commit()
    await db.refresh(item)
    return item


@router.put("/checklist-items/order", response_model=List[ChecklistItemResponse])
async def reorder_checklist_items(
    data: ChecklistOrderUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Rewrite display order to follow the given id sequence."""
    result = await db.execute(
        select(ChecklistItem).where(
            ChecklistItem.company_id == current_user.company_id,
            ChecklistItem.id.in_(data.item_ids),
        )
    )
    items = {item.id: item for item in result.scalars().all()}
    missing = [str(i) for i in data.item_ids if i not in items]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Checklist items not found: {', '.join(missing)}",
        )

    for position, item_id in enumerate(data.item_ids):
        items[item_id].display_order = position

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        "Reordered checklist items",
        entity_type="checklist_item",
        details={"count": len(data.item_ids)},
    )
    await db.commit()
    return sorted(items.values(), key=lambda i: i.display_order)


async def _get_checklist_item(db: AsyncSession, current_user: AuthenticatedUser, item_id: UUID) -> ChecklistItem:
    item = await db.get(ChecklistItem, item_id)
    if not item or item.company_id != current_user.company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checklist item not found")
    return item


@router.patch("/checklist-items/{item_id}", response_model=ChecklistItemResponse)
async def update_checklist_item(
    item_id: UUID,
    data: ChecklistItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    item = await _get_checklist_item(db, current_user, item_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(item, field, value)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        f"Updated checklist item '{item.name}'",
        entity_type="checklist_item",
        entity_id=item.id,
        entity_name=item.name,
    )
    await db.commit()
    await db.refresh(item)
    return item


@router.delete("/checklist-items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_checklist_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Deactivate an item. Completed jobs keep their own copy of the name."""
    item = await _get_checklist_item(db, current_user, item_id)
    item.is_active = False

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        f"Removed checklist item '{item.name}'",
        entity_type="checklist_item",
        entity_id=item.id,
        entity_name=item.name,
    )
    await db.commit()


# === Branding ===

@router.get("/branding", response_model=BrandingResponse)
async def read_branding(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    branding = await get_or_create_branding(db, current_user)
    await db.commit()
    return branding


@router.patch("/branding", response_model=BrandingResponse)
async def update_branding(
    data: BrandingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    branding = await get_or_create_branding(db, current_user)
    previous_logo = branding.logo_url
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(branding, field, value)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.SETTINGS_UPDATED,
        "Updated company branding",
        entity_type="company_branding",
        details=data.model_dump(exclude_unset=True),
    )
    await db.commit()
    await db.refresh(branding)

    if previous_logo and previous_logo != branding.logo_url:
        await get_storage_service().delete_by_url(previous_logo)
    return branding


@router.post("/branding/logo/presign", response_model=PresignResponse)
async def presign_logo_upload(
    data: PresignRequest,
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Get a presigned URL for uploading the company logo."""
    upload = await get_storage_service().create_presigned_upload(
        company_id=current_user.company_id,
        entity="branding",
        purpose="logo",
        mime_type=data.mime_type,
        file_size_bytes=data.file_size_bytes,
    )
    return PresignResponse(**upload._asdict())
