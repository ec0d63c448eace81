"""Clients and service locations router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleansuite.core.database import LIKE_ESCAPE, contains_pattern, get_db
from cleansuite.core.security import AuthenticatedUser, require_admin_or_manager, require_company_member
from cleansuite.models.client import Client, ClientLocation
from cleansuite.models.enums import ActivityAction, ClientStatus
from cleansuite.schemas.client import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    LocationCreate,
    LocationResponse,
    LocationUpdate,
)
from cleansuite.services.activity import ActivityService

router = APIRouter(prefix="/clients", tags=["clients"])


async def _get_client(db: AsyncSession, current_user: AuthenticatedUser, client_id: UUID) -> Client:
    result = await db.execute(
        select(Client)
        .options(selectinload(Client.locations))
        .where(Client.id == client_id, Client.company_id == current_user.company_id)
    )
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Create a client, optionally with its locations."""
    client = Client(
        company_id=current_user.company_id,
        name=data.name,
        email=data.email,
        phone=data.phone,
        notes=data.notes,
    )
    db.add(client)
    await db.flush()

    for loc in data.locations:
        db.add(ClientLocation(
            company_id=current_user.company_id,
            client_id=client.id,
            **loc.model_dump(mode="json"),
        ))

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.CLIENT_CREATED,
        f"Created client {client.name}",
        entity_type="client",
        entity_id=client.id,
        entity_name=client.name,
        details={"locations": len(data.locations)},
    )
    await db.commit()

    return await _get_client(db, current_user, client.id)


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    client_status: Optional[ClientStatus] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    """List clients for the company."""
    query = (
        select(Client)
        .options(selectinload(Client.locations))
        .where(Client.company_id == current_user.company_id)
        .order_by(Client.name)
    )
    if client_status:
        query = query.where(Client.status == client_status)
    if search:
        query = query.where(Client.name.ilike(contains_pattern(search.strip()), escape=LIKE_ESCAPE))

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    return await _get_client(db, current_user, client_id)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: UUID,
    data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Update a client. Setting status to inactive is logged as an inactivation."""
    client = await _get_client(db, current_user, client_id)
    changes = data.model_dump(exclude_unset=True)
    was_active = client.status == ClientStatus.ACTIVE

    for field, value in changes.items():
        setattr(client, field, value)

    if was_active and client.status == ClientStatus.INACTIVE:
        action, description = ActivityAction.CLIENT_INACTIVATED, f"Inactivated client {client.name}"
    else:
        action, description = ActivityAction.CLIENT_UPDATED, f"Updated client {client.name}"

    await ActivityService.for_user(db, current_user).log(
        action,
        description,
        entity_type="client",
        entity_id=client.id,
        entity_name=client.name,
        details={"fields": sorted(changes)},
    )
    await db.commit()

    return await _get_client(db, current_user, client_id)


@router.delete("/{client_id}", response_model=ClientResponse)
async def inactivate_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Inactivate a client. Clients are never hard-deleted; their jobs and invoices stay."""
    client = await _get_client(db, current_user, client_id)
    if client.status != ClientStatus.INACTIVE:
        client.status = ClientStatus.INACTIVE
        await ActivityService.for_user(db, current_user).log(
            ActivityAction.CLIENT_INACTIVATED,
            f"Inactivated client {client.name}",
            entity_type="client",
            entity_id=client.id,
            entity_name=client.name,
        )
        await db.commit()

    return await _get_client(db, current_user, client_id)


# === Locations ===

@router.get("/{client_id}/locations", response_model=List[LocationResponse])
async def list_locations(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_company_member),
):
    client = await _get_client(db, current_user, client_id)
    return client.locations


@router.post(
    "/{client_id}/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_location(
    client_id: UUID,
    data: LocationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    client = await _get_client(db, current_user, client_id)
    location = ClientLocation(
        company_id=current_user.company_id,
        client_id=client.id,
        **data.model_dump(mode="json"),
    )
    db.add(location)
    await db.flush()

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.LOCATION_CREATED,
        f"Added location {location.address} for {client.name}",
        entity_type="client_location",
        entity_id=location.id,
        entity_name=client.name,
    )
    await db.commit()
    await db.refresh(location)
    return location


@router.patch("/{client_id}/locations/{location_id}", response_model=LocationResponse)
async def update_location(
    client_id: UUID,
    location_id: UUID,
    data: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    result = await db.execute(
        select(ClientLocation).where(
            ClientLocation.id == location_id,
            ClientLocation.client_id == client_id,
            ClientLocation.company_id == current_user.company_id,
        )
    )
    location = result.scalar_one_or_none()
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")

    for field, value in data.model_dump(mode="json", exclude_unset=True).items():
        setattr(location, field, value)

    await ActivityService.for_user(db, current_user).log(
        ActivityAction.LOCATION_UPDATED,
        f"Updated location {location.address}",
        entity_type="client_location",
        entity_id=location.id,
    )
    await db.commit()
    await db.refresh(location)
    return location
