"""Read-side queries for curfew status and modification history."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from rentalhub.core.curfew_errors import TenantNotFound
from rentalhub.core.curfew_status import (
    CurfewStatus,
    ModificationType,
    STATUS_LABELS,
    effective_status,
    temporary_expiry,
)
from rentalhub.core.curfew_workflow import get_grant_time
from rentalhub.core.time import utc_now
from rentalhub.models.curfew_modification import CurfewModification
from rentalhub.models.tenant import Tenant


def describe_status(db: Session, tenant: Tenant, as_of: Optional[datetime] = None) -> Dict[str, Any]:
    """Stored and effective curfew status for one tenant."""
    as_of = as_of or utc_now()
    stored = tenant.curfew_status
    granted_at = None
    expires_at = None
    if stored == CurfewStatus.APPROVED_TEMPORARY.value:
        granted_at = get_grant_time(db, tenant)
        if granted_at is not None:
            expires_at = temporary_expiry(granted_at)
    effective = effective_status(stored, granted_at, as_of)
    return {
        "tenant_id": tenant.tenant_id,
        "tenant_name": tenant.name,
        "room_id": tenant.room_id,
        "is_active": tenant.is_active,
        "stored_status": stored,
        "effective_status": effective,
        "effective_status_label": STATUS_LABELS[effective],
        "granted_at": granted_at,
        "expires_at": expires_at,
        "curfew_requested_at": tenant.curfew_requested_at,
        "curfew_approved_at": tenant.curfew_approved_at,
        "as_of": as_of,
    }


def get_tenant_status(db: Session, tenant_id: int, as_of: Optional[datetime] = None) -> Dict[str, Any]:
    tenant = db.query(Tenant).filter(Tenant.tenant_id == tenant_id).first()
    if tenant is None:
        raise TenantNotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    return describe_status(db, tenant, as_of)


def list_room_tenants(db: Session, room_id: int, as_of: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Active tenants of a room, by name. Moved-out tenants are never eligible for requests."""
    tenants = db.query(Tenant).filter(
        Tenant.room_id == room_id,
        Tenant.is_active == True
    ).order_by(Tenant.name.asc()).all()
    return [describe_status(db, t, as_of) for t in tenants]


def get_modification_history(db: Session, tenant_id: int) -> List[CurfewModification]:
    """All log entries for a tenant, newest first."""
    exists = db.query(Tenant.tenant_id).filter(Tenant.tenant_id == tenant_id).first()
    if exists is None:
        raise TenantNotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    return db.query(CurfewModification).options(
        joinedload(CurfewModification.modifier)
    ).filter(
        CurfewModification.tenant_id == tenant_id
    ).order_by(
        CurfewModification.modified_at.desc(),
        CurfewModification.modification_id.desc()
    ).all()


def get_latest_entry(db: Session, tenant_id: int) -> Optional[CurfewModification]:
    """Most recently appended log entry for a tenant."""
    return db.query(CurfewModification).filter(
        CurfewModification.tenant_id == tenant_id
    ).order_by(CurfewModification.modification_id.desc()).first()


def list_pending_requests(db: Session) -> List[Dict[str, Any]]:
    """Tenants awaiting a decision, newest request first, each with its latest REQUEST entry."""
    tenants = db.query(Tenant).options(
        joinedload(Tenant.room),
        joinedload(Tenant.user)
    ).filter(
        Tenant.curfew_status == CurfewStatus.PENDING.value
    ).order_by(
        Tenant.curfew_requested_at.desc(),
        Tenant.tenant_id.asc()
    ).all()

    pending = []
    for tenant in tenants:
        latest_request = db.query(CurfewModification).options(
            joinedload(CurfewModification.modifier)
        ).filter(
            CurfewModification.tenant_id == tenant.tenant_id,
            CurfewModification.modification_type == ModificationType.REQUEST.value
        ).order_by(CurfewModification.modification_id.desc()).first()
        pending.append({
            "tenant_id": tenant.tenant_id,
            "tenant_name": tenant.name,
            "room_id": tenant.room_id,
            "room_number": tenant.room.room_number if tenant.room else None,
            "floor": tenant.room.floor if tenant.room else None,
            "user_id": tenant.user_id,
            "curfew_requested_at": tenant.curfew_requested_at,
            "latest_request": latest_request,
        })
    return pending


def check_log_consistency(db: Session, tenant_id: int) -> bool:
    """Whether the tenant's stored status matches the tail of its log (True when the log is empty)."""
    tenant = db.query(Tenant).filter(Tenant.tenant_id == tenant_id).first()
    if tenant is None:
        raise TenantNotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    latest = get_latest_entry(db, tenant_id)
    if latest is None:
        return tenant.curfew_status == CurfewStatus.NORMAL.value
    return latest.new_status == tenant.curfew_status
