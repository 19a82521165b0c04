# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.auth import get_current_user
from barbershop.core import utc_now
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.models import UserRole
from barbershop.schemas import ServiceCreate, ServicePublic, ServiceUpdate
from barbershop.stores import ServiceCatalog

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return ServiceCatalog(session).list_active()


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    db_service = ServiceCatalog(session).create(
        name=service.name,
        description=service.description,
        duration_minutes=service.duration_minutes,
        price_amount=service.price_amount,
    )
    session.commit()
    session.refresh(db_service)
    return db_service


@router.put("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    changes: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=422, detail="No fields to update")

    catalog = ServiceCatalog(session)
    db_service = catalog.get(service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    # Existing appointments keep their stored end time; only new bookings see a new duration
    catalog.update(db_service, fields)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.delete("/{service_id}")
def delete_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    catalog = ServiceCatalog(session)
    db_service = catalog.get(service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    outcome = catalog.delete(db_service, now=utc_now())
    session.commit()
    return {"id": service_id, "result": outcome}
