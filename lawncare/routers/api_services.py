from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..crud.services import (
    create_service,
    delete_service,
    get_service,
    list_services,
    update_service,
    validate_service,
)
from ..db.session import get_db
from ..deps.auth import require_admin
from ..models.service import Service
from ..schemas.service import ServiceIn, ServiceOut

router = APIRouter(prefix="/api/services", tags=["services"])


def _require_service(db: Session, service_id: int) -> Service:
    service = get_service(db, service_id)
    if not service:
        raise NotFound("Service not found")
    return service


@router.get("", response_model=list[ServiceOut])
def api_list_services(db: Session = Depends(get_db)):
    return list_services(db)


@router.post("", response_model=ServiceOut, status_code=201, dependencies=[Depends(require_admin)])
def api_create_service(payload: ServiceIn, db: Session = Depends(get_db)):
    return create_service(db, payload.model_dump(exclude_unset=True))


@router.get("/{service_id}", response_model=ServiceOut)
def api_get_service(service_id: int, db: Session = Depends(get_db)):
    return _require_service(db, service_id)


@router.put("/{service_id}", response_model=ServiceOut, dependencies=[Depends(require_admin)])
def api_update_service(service_id: int, payload: ServiceIn, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude_unset=True)
    validate_service(data)
    return update_service(db, _require_service(db, service_id), data)


@router.delete("/{service_id}", dependencies=[Depends(require_admin)])
def api_delete_service(service_id: int, db: Session = Depends(get_db)):
    delete_service(db, _require_service(db, service_id))
    return {"success": True}
