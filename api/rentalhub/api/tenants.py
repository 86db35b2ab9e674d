"""Tenant management routes."""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from rentalhub.core.database import get_db
from rentalhub.core.deps import require_admin
from rentalhub.core.curfew_history import describe_status
from rentalhub.core.curfew_status import CurfewStatus
from rentalhub.models import Room, Tenant, User
from rentalhub.schemas.tenant import TenantCreate, TenantMoveOut, TenantResponse

router = APIRouter()


def to_tenant_response(db: Session, tenant: Tenant) -> TenantResponse:
    response = TenantResponse.model_validate(tenant)
    response.effective_curfew_status = describe_status(db, tenant)["effective_status"]
    return response


@router.post("/", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    tenant_data: TenantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Onboard a tenant. Curfew status starts at NORMAL with an empty history."""
    room = db.query(Room).filter(Room.room_id == tenant_data.room_id).first()
    if not room or not room.is_active:
        raise HTTPException(status_code=400, detail="Room not found or inactive")

    if tenant_data.user_id is not None:
        user = db.query(User).filter(User.user_id == tenant_data.user_id).first()
        if not user:
            raise HTTPException(status_code=400, detail="Linked user not found")
        already_linked = db.query(Tenant).filter(Tenant.user_id == tenant_data.user_id).first()
        if already_linked:
            raise HTTPException(
                status_code=400,
                detail=f"User {tenant_data.user_id} is already linked to tenant {already_linked.tenant_id}"
            )

    tenant = Tenant(
        name=tenant_data.name,
        phone=tenant_data.phone,
        room_id=tenant_data.room_id,
        user_id=tenant_data.user_id,
        move_in_date=tenant_data.move_in_date or date.today(),
        curfew_status=CurfewStatus.NORMAL.value,
        is_active=True,
    )
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return to_tenant_response(db, tenant)


@router.get("/", response_model=List[TenantResponse])
def list_tenants(
    room_id: Optional[int] = Query(None),
    include_inactive: bool = Query(False, description="Include tenants who have moved out"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    query = db.query(Tenant)
    if room_id is not None:
        query = query.filter(Tenant.room_id == room_id)
    if not include_inactive:
        query = query.filter(Tenant.is_active == True)
    tenants = query.order_by(Tenant.room_id.asc(), Tenant.name.asc()).all()
    return [to_tenant_response(db, t) for t in tenants]


@router.get("/{tenant_id}", response_model=TenantResponse)
def get_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    tenant = db.query(Tenant).filter(Tenant.tenant_id == tenant_id).first()
    if not tenant:
        raise HTTPException(status_code=404, detail=f"Tenant {tenant_id} not found")
    return to_tenant_response(db, tenant)


@router.post("/{tenant_id}/move-out", response_model=TenantResponse)
def move_out_tenant(
    tenant_id: int,
    move_out_data: TenantMoveOut,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Soft-delete a tenant on move-out.

    Curfew status is left untouched so the history stays continuous; the
    tenant simply drops out of request-eligible lists.
    """
    tenant = db.query(Tenant).filter(Tenant.tenant_id == tenant_id).first()
    if not tenant:
        raise HTTPException(status_code=404, detail=f"Tenant {tenant_id} not found")
    if not tenant.is_active:
        raise HTTPException(status_code=400, detail=f"Tenant {tenant_id} has already moved out")

    tenant.is_active = False
    tenant.move_out_date = move_out_data.move_out_date or date.today()
    db.commit()
    db.refresh(tenant)
    return to_tenant_response(db, tenant)
