"""Curfew override API endpoints."""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from rentalhub.core.database import get_db
from rentalhub.core.deps import get_current_user, require_admin
from rentalhub.core.roles import is_admin
from rentalhub.core import curfew_history, curfew_workflow
from rentalhub.core.curfew_errors import CurfewError
from rentalhub.core.curfew_workflow import Actor, TransitionResult
from rentalhub.core.time import to_naive_utc
from rentalhub.models import Tenant, User
from rentalhub.schemas.curfew import (
    CurfewApproveRequest,
    CurfewBatchResponse,
    CurfewManualChangeRequest,
    CurfewModificationResponse,
    CurfewRejectRequest,
    CurfewRequestCreate,
    CurfewResetRequest,
    CurfewStatusResponse,
    PendingCurfewRequestResponse,
    TransitionResultResponse,
)

router = APIRouter()


def raise_curfew_http_error(exc: CurfewError):
    """Translate a workflow error into an HTTP error that keeps tenant and status context."""
    raise HTTPException(status_code=exc.http_status, detail=exc.to_dict())


def build_batch_response(results: List[TransitionResult]) -> CurfewBatchResponse:
    succeeded = sum(1 for r in results if r.success)
    return CurfewBatchResponse(
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=[TransitionResultResponse.model_validate(r) for r in results],
    )


def get_user_room_id(current_user: User) -> int:
    if current_user.tenant is None or not current_user.tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be linked to a tenant"
        )
    return current_user.tenant.room_id


def check_tenant_access(db: Session, tenant_id: int, current_user: User) -> Tenant:
    """Admins see every tenant; other users only tenants in their own room."""
    tenant = db.query(Tenant).filter(Tenant.tenant_id == tenant_id).first()
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant {tenant_id} not found"
        )
    if is_admin(current_user):
        return tenant
    if tenant.room_id != get_user_room_id(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view tenants in your room"
        )
    return tenant


@router.get("/room-tenants", response_model=List[CurfewStatusResponse])
def get_room_tenants(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Active tenants in the caller's room, for selecting who to request an override for."""
    room_id = get_user_room_id(current_user)
    return curfew_history.list_room_tenants(db, room_id)


@router.post("/request", response_model=CurfewBatchResponse)
def request_curfew_override(
    request_data: CurfewRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Request a curfew override for one or more tenants.

    Non-admins may only request for active tenants in their own room. Each
    tenant is processed independently: the response lists the outcome per
    tenant, and partial success still returns 200.
    """
    tenant_ids = list(dict.fromkeys(request_data.tenant_ids))
    if not tenant_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one tenant must be selected"
        )

    if not is_admin(current_user):
        room_id = get_user_room_id(current_user)
        in_room = db.query(Tenant.tenant_id).filter(
            Tenant.tenant_id.in_(tenant_ids),
            Tenant.room_id == room_id,
            Tenant.is_active == True
        ).count()
        if in_room != len(tenant_ids):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="All selected tenants must be in your room"
            )

    results = curfew_workflow.request_override(
        db,
        tenant_ids,
        Actor.from_user(current_user),
        reason=request_data.reason,
        requester=current_user,
    )
    return build_batch_response(results)


@router.get("/pending", response_model=List[PendingCurfewRequestResponse])
def get_pending_curfew_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """All tenants awaiting a decision (Admin only)."""
    return curfew_history.list_pending_requests(db)


@router.get("/modifications/{tenant_id}", response_model=List[CurfewModificationResponse])
def get_curfew_modifications(
    tenant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Full modification history for a tenant, newest first."""
    check_tenant_access(db, tenant_id, current_user)
    try:
        return curfew_history.get_modification_history(db, tenant_id)
    except CurfewError as exc:
        raise_curfew_http_error(exc)


@router.get("/tenants/{tenant_id}/status", response_model=CurfewStatusResponse)
def get_curfew_status(
    tenant_id: int,
    as_of: Optional[datetime] = Query(None, description="Evaluate at this instant instead of now"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Stored and effective curfew status. Temporary approvals expire lazily at read time."""
    check_tenant_access(db, tenant_id, current_user)
    try:
        return curfew_history.get_tenant_status(
            db, tenant_id, to_naive_utc(as_of) if as_of else None
        )
    except CurfewError as exc:
        raise_curfew_http_error(exc)


@router.post("/approve", response_model=CurfewBatchResponse)
def approve_curfew_override(
    approve_data: CurfewApproveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Approve pending requests, until tomorrow morning or permanently (Admin only)."""
    try:
        results = curfew_workflow.approve_many(
            db,
            approve_data.tenant_ids,
            Actor.from_user(current_user),
            is_permanent=approve_data.is_permanent,
            expected_status=approve_data.expected_status,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except CurfewError as exc:
        raise_curfew_http_error(exc)
    return build_batch_response(results)


@router.post("/reject", response_model=CurfewBatchResponse)
def reject_curfew_override(
    reject_data: CurfewRejectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Reject pending requests (Admin only)."""
    try:
        results = curfew_workflow.reject_many(
            db,
            reject_data.tenant_ids,
            Actor.from_user(current_user),
            reason=reject_data.reason,
            expected_status=reject_data.expected_status,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except CurfewError as exc:
        raise_curfew_http_error(exc)
    return build_batch_response(results)


@router.post("/reset", response_model=CurfewModificationResponse)
def reset_curfew_override(
    reset_data: CurfewResetRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Return a tenant to NORMAL from any status (Admin only)."""
    try:
        return curfew_workflow.reset(
            db,
            reset_data.tenant_id,
            Actor.from_user(current_user),
            reason=reset_data.reason,
            expected_status=reset_data.expected_status,
        )
    except CurfewError as exc:
        raise_curfew_http_error(exc)


@router.post("/manual-change", response_model=CurfewModificationResponse)
def manual_change_curfew_status(
    change_data: CurfewManualChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Set any curfew status directly (Admin only). Always recorded in the history."""
    try:
        return curfew_workflow.manual_change(
            db,
            change_data.tenant_id,
            change_data.new_status,
            Actor.from_user(current_user),
            reason=change_data.reason,
            is_permanent=change_data.is_permanent,
            expected_status=change_data.expected_status,
        )
    except CurfewError as exc:
        raise_curfew_http_error(exc)


@router.post("/expire-temporary", response_model=CurfewBatchResponse)
def expire_temporary_curfew_overrides(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Reset stored temporary approvals whose morning deadline has passed (Admin only)."""
    results = curfew_workflow.expire_temporary_overrides(db, Actor.from_user(current_user))
    return build_batch_response(results)
