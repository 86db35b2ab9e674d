"""
Curfew override workflow engine.

This module is the only writer of tenants.curfew_status and of the
curfew_modifications log. Every operation:
1. Checks the actor's role
2. Reads the tenant's current status
3. Validates the transition against that status
4. Applies a guarded update (WHERE curfew_status = <status it read>) and
   appends the log row in the same transaction
5. Dispatches notifications after commit (best-effort)

If the guarded update matches no row, another writer got there first and the
operation fails with ConflictOnWrite; nothing is written. Callers must not
retry blindly, since the new state was never shown to the person who made
the decision.

Batch entry points (request_override, approve_many, reject_many) run each
tenant in its own transaction and report a TransitionResult per tenant.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentalhub.core import notifications
from rentalhub.core.config import settings
from rentalhub.core.curfew_errors import (
    ActorNotPermitted,
    ConflictOnWrite,
    CurfewError,
    InvalidTransition,
    TenantNotFound,
)
from rentalhub.core.curfew_status import (
    APPROVED_STATUSES,
    CurfewStatus,
    ModificationType,
    effective_status,
    is_transition_allowed,
    normalize_status,
    target_status,
    temporary_expiry,
)
from rentalhub.core.roles import RoleCode, normalize_role_code
from rentalhub.core.time import to_local, utc_now
from rentalhub.models.curfew_modification import CurfewModification
from rentalhub.models.tenant import Tenant
from rentalhub.models.user import User

logger = logging.getLogger(__name__)

AUTO_RESET_REASON = "Automatic reset at 6:00 AM"
MANUAL_CHANGE_DEFAULT_REASON = "Manual change by admin"
DATABASE_ERROR_CODE = "DATABASE_ERROR"


@dataclass(frozen=True)
class Actor:
    """Resolved identity performing a curfew operation."""
    user_id: int
    role: str

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(user_id=user.user_id, role=normalize_role_code(user.role) or user.role)

    @property
    def is_admin(self) -> bool:
        return normalize_role_code(self.role) == RoleCode.ADMIN.value


@dataclass
class TransitionResult:
    tenant_id: int
    success: bool
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    modification_id: Optional[int] = None
    error_code: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: CurfewModification) -> "TransitionResult":
        return cls(
            tenant_id=entry.tenant_id,
            success=True,
            old_status=entry.old_status,
            new_status=entry.new_status,
            modification_id=entry.modification_id,
        )

    @classmethod
    def from_error(cls, tenant_id: int, exc: CurfewError) -> "TransitionResult":
        return cls(
            tenant_id=tenant_id,
            success=False,
            old_status=exc.current_status,
            error_code=exc.code,
            message=exc.message,
        )


def _require_admin(actor: Actor, operation: str, tenant_id: Optional[int] = None) -> None:
    if not actor.is_admin:
        raise ActorNotPermitted(
            f"Only admins may {operation} curfew overrides (actor {actor.user_id} has role {actor.role})",
            tenant_id=tenant_id,
        )


def _read_current(db: Session, tenant_id: int, active_only: bool = False) -> Tuple[Tenant, str]:
    """Load the tenant and the status it currently has."""
    tenant = db.query(Tenant).filter(Tenant.tenant_id == tenant_id).first()
    if tenant is None:
        raise TenantNotFound(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
    if active_only and not tenant.is_active:
        raise TenantNotFound(f"Tenant {tenant_id} has moved out", tenant_id=tenant_id)
    return tenant, tenant.curfew_status


def _read_model_updates(
    tenant: Tenant,
    modification_type: str,
    new_status: str,
    actor: Actor,
    now: datetime
) -> dict:
    """Request/approval timestamps kept on the tenant row for display."""
    if modification_type == ModificationType.REQUEST.value:
        return {"curfew_requested_at": now}
    if modification_type == ModificationType.APPROVE.value:
        return {"curfew_approved_at": now, "curfew_approved_by": actor.user_id}
    if modification_type == ModificationType.REJECT.value:
        return {"curfew_requested_at": None, "curfew_approved_at": None, "curfew_approved_by": None}
    if modification_type == ModificationType.RESET.value:
        return {"curfew_approved_at": None, "curfew_approved_by": None}

    approved = new_status in APPROVED_STATUSES
    return {
        "curfew_approved_at": now if approved else None,
        "curfew_approved_by": actor.user_id if approved else None,
        "curfew_requested_at": (
            (tenant.curfew_requested_at or now) if new_status == CurfewStatus.PENDING.value else None
        ),
    }


def _apply_transition(
    db: Session,
    actor: Actor,
    tenant_id: int,
    modification_type: str,
    new_status: Optional[str] = None,
    reason: Optional[str] = None,
    is_permanent: bool = False,
    expected_status: Optional[str] = None,
    active_only: bool = False,
    now: Optional[datetime] = None,
    precheck: Optional[Callable[[Tenant, str], None]] = None
) -> CurfewModification:
    """
    Validate and apply one transition; status update and log append commit together.

    A REQUEST against a temporary approval that has already lapsed is gated
    as NORMAL. The lapse is written as an automatic RESET entry in the same
    transaction, ahead of the REQUEST entry, while the guarded update still
    expects the stored APPROVED_TEMPORARY.
    """
    tenant, observed = _read_current(db, tenant_id, active_only=active_only)
    now = now or utc_now()

    lapsed_at = None
    gated_status = observed
    if modification_type == ModificationType.REQUEST.value and \
            observed == CurfewStatus.APPROVED_TEMPORARY.value:
        granted_at = get_grant_time(db, tenant)
        if effective_status(observed, granted_at, now) == CurfewStatus.NORMAL.value:
            lapsed_at = min(temporary_expiry(granted_at), now) if granted_at else now
            gated_status = CurfewStatus.NORMAL.value

    if expected_status is not None:
        expected = normalize_status(expected_status)
        if expected != observed:
            raise ConflictOnWrite(
                f"Tenant {tenant_id} ({tenant.name}) is now {observed}, not {expected}; "
                f"reload and review the current status",
                tenant_id=tenant_id,
                current_status=observed,
                expected_status=expected,
            )

    if not is_transition_allowed(modification_type, gated_status):
        required = CurfewStatus.NORMAL.value if modification_type == ModificationType.REQUEST.value \
            else CurfewStatus.PENDING.value
        raise InvalidTransition(
            f"Cannot {modification_type.lower()} curfew override for tenant {tenant_id} ({tenant.name}): "
            f"status is {gated_status}, expected {required}",
            tenant_id=tenant_id,
            current_status=gated_status,
            expected_status=required,
        )

    if precheck is not None:
        precheck(tenant, gated_status)

    if new_status is None:
        new_status = target_status(modification_type, is_permanent)

    values = {"curfew_status": new_status}
    values.update(_read_model_updates(tenant, modification_type, new_status, actor, now))
    if lapsed_at is not None:
        values.update({"curfew_approved_at": None, "curfew_approved_by": None})

    tenant_name = tenant.name
    try:
        updated = db.query(Tenant).filter(
            Tenant.tenant_id == tenant_id,
            Tenant.curfew_status == observed
        ).update(values, synchronize_session=False)
        if updated == 1:
            if lapsed_at is not None:
                db.add(CurfewModification(
                    tenant_id=tenant_id,
                    modification_type=ModificationType.RESET.value,
                    old_status=observed,
                    new_status=CurfewStatus.NORMAL.value,
                    is_permanent=False,
                    reason=AUTO_RESET_REASON,
                    modified_by=actor.user_id,
                    modified_by_role=actor.role,
                    modified_at=lapsed_at,
                ))
                db.flush()
            entry = CurfewModification(
                tenant_id=tenant_id,
                modification_type=modification_type,
                old_status=gated_status,
                new_status=new_status,
                is_permanent=is_permanent,
                reason=reason,
                modified_by=actor.user_id,
                modified_by_role=actor.role,
                modified_at=now,
            )
            db.add(entry)
            db.commit()
        else:
            db.rollback()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Curfew %s failed for tenant %s", modification_type, tenant_id)
        raise

    if updated != 1:
        current = db.query(Tenant.curfew_status).filter(Tenant.tenant_id == tenant_id).scalar()
        logger.warning(
            "Curfew %s conflict for tenant %s: expected %s, found %s",
            modification_type, tenant_id, observed, current
        )
        raise ConflictOnWrite(
            f"Tenant {tenant_id} ({tenant_name}) changed from {observed} to {current} while this "
            f"{modification_type.lower()} was being applied; reload and review the current status",
            tenant_id=tenant_id,
            current_status=current,
            expected_status=observed,
        )

    db.refresh(entry)
    db.expire(tenant)
    logger.info(
        "Curfew %s for tenant %s: %s -> %s by user %s",
        modification_type, tenant_id, observed, new_status, actor.user_id
    )
    return entry


def _unique(tenant_ids: Iterable[int]) -> List[int]:
    seen = set()
    ordered = []
    for tenant_id in tenant_ids:
        if tenant_id not in seen:
            seen.add(tenant_id)
            ordered.append(tenant_id)
    return ordered


def _run_batch(
    db: Session,
    tenant_ids: Iterable[int],
    operation: Callable[[int], CurfewModification]
) -> List[TransitionResult]:
    """
    Run operation once per distinct tenant id.

    Earlier tenants are already committed when a later one fails, so a
    database error is reported as that tenant's result instead of aborting
    the batch.
    """
    ids = _unique(tenant_ids)
    if not ids:
        raise ValueError("At least one tenant must be selected")

    results = []
    for tenant_id in ids:
        try:
            entry = operation(tenant_id)
        except ActorNotPermitted:
            raise
        except CurfewError as exc:
            logger.info("Curfew batch item failed for tenant %s: %s", tenant_id, exc.message)
            results.append(TransitionResult.from_error(tenant_id, exc))
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Curfew batch item failed for tenant %s with a database error", tenant_id)
            results.append(TransitionResult(
                tenant_id=tenant_id,
                success=False,
                error_code=DATABASE_ERROR_CODE,
                message=f"Database error while processing tenant {tenant_id}; nothing was changed",
            ))
        else:
            results.append(TransitionResult.from_entry(entry))
    return results


def _requested_today(db: Session, tenant_id: int, now: datetime) -> bool:
    """Whether the tenant already has a REQUEST entry on the current local calendar day."""
    last_request = db.query(CurfewModification).filter(
        CurfewModification.tenant_id == tenant_id,
        CurfewModification.modification_type == ModificationType.REQUEST.value
    ).order_by(CurfewModification.modification_id.desc()).first()
    if last_request is None:
        return False
    return to_local(last_request.modified_at).date() == to_local(now).date()


def request_override(
    db: Session,
    tenant_ids: Iterable[int],
    requested_by: Actor,
    reason: Optional[str] = None,
    requester: Optional[User] = None,
    now: Optional[datetime] = None
) -> List[TransitionResult]:
    """
    Ask for a curfew override for one or more tenants.

    Each tenant must be active and NORMAL. Tenants are processed independently;
    one tenant's failure never skips or undoes another's request. Admins are
    notified once for the whole batch if at least one request went through.
    """
    now = now or utc_now()

    def one_per_day(tenant: Tenant, observed: str) -> None:
        if settings.CURFEW_ONE_REQUEST_PER_DAY and _requested_today(db, tenant.tenant_id, now):
            raise InvalidTransition(
                f"Tenant {tenant.tenant_id} ({tenant.name}) already requested a curfew override today",
                tenant_id=tenant.tenant_id,
                current_status=observed,
                expected_status=CurfewStatus.NORMAL.value,
            )

    results = _run_batch(
        db,
        tenant_ids,
        lambda tenant_id: _apply_transition(
            db, requested_by, tenant_id, ModificationType.REQUEST.value,
            reason=reason, active_only=True, now=now, precheck=one_per_day
        )
    )

    succeeded = [r.tenant_id for r in results if r.success]
    if succeeded:
        notifications.notify_curfew_request(
            db, requested_by.user_id, succeeded, reason, requester=requester
        )
    return results


def approve(
    db: Session,
    tenant_id: int,
    approved_by: Actor,
    is_permanent: bool = False,
    expected_status: Optional[str] = None,
    now: Optional[datetime] = None
) -> CurfewModification:
    """Approve a PENDING request, temporarily (until the next morning) or permanently."""
    _require_admin(approved_by, "approve", tenant_id)
    entry = _apply_transition(
        db, approved_by, tenant_id, ModificationType.APPROVE.value,
        is_permanent=is_permanent, expected_status=expected_status, now=now
    )
    notifications.notify_curfew_decision(db, notifications.CurfewEvent(
        tenant_id=tenant_id,
        modification_type=entry.modification_type,
        new_status=entry.new_status,
        is_permanent=is_permanent,
    ))
    return entry


def reject(
    db: Session,
    tenant_id: int,
    rejected_by: Actor,
    reason: Optional[str] = None,
    expected_status: Optional[str] = None,
    now: Optional[datetime] = None
) -> CurfewModification:
    """Reject a PENDING request; the tenant returns to NORMAL."""
    _require_admin(rejected_by, "reject", tenant_id)
    entry = _apply_transition(
        db, rejected_by, tenant_id, ModificationType.REJECT.value,
        reason=reason, expected_status=expected_status, now=now
    )
    notifications.notify_curfew_decision(db, notifications.CurfewEvent(
        tenant_id=tenant_id,
        modification_type=entry.modification_type,
        new_status=entry.new_status,
        reason=reason,
    ))
    return entry


def approve_many(
    db: Session,
    tenant_ids: Iterable[int],
    approved_by: Actor,
    is_permanent: bool = False,
    expected_status: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[TransitionResult]:
    _require_admin(approved_by, "approve")
    return _run_batch(
        db,
        tenant_ids,
        lambda tenant_id: approve(db, tenant_id, approved_by, is_permanent, expected_status, now)
    )


def reject_many(
    db: Session,
    tenant_ids: Iterable[int],
    rejected_by: Actor,
    reason: Optional[str] = None,
    expected_status: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[TransitionResult]:
    _require_admin(rejected_by, "reject")
    return _run_batch(
        db,
        tenant_ids,
        lambda tenant_id: reject(db, tenant_id, rejected_by, reason, expected_status, now)
    )


def reset(
    db: Session,
    tenant_id: int,
    reset_by: Actor,
    reason: Optional[str] = None,
    expected_status: Optional[str] = None,
    now: Optional[datetime] = None
) -> CurfewModification:
    """Return a tenant to NORMAL from any status."""
    _require_admin(reset_by, "reset", tenant_id)
    return _apply_transition(
        db, reset_by, tenant_id, ModificationType.RESET.value,
        reason=reason, expected_status=expected_status, now=now
    )


def manual_change(
    db: Session,
    tenant_id: int,
    new_status: str,
    changed_by: Actor,
    reason: Optional[str] = None,
    is_permanent: bool = False,
    expected_status: Optional[str] = None,
    now: Optional[datetime] = None
) -> CurfewModification:
    """Admin escape hatch: set any status from any status. Always logged."""
    _require_admin(changed_by, "manually change", tenant_id)
    new_status = normalize_status(new_status)
    if new_status == CurfewStatus.APPROVED_PERMANENT.value:
        is_permanent = True
    elif new_status != CurfewStatus.APPROVED_TEMPORARY.value:
        is_permanent = False
    return _apply_transition(
        db, changed_by, tenant_id, ModificationType.MANUAL_CHANGE.value,
        new_status=new_status,
        reason=reason or MANUAL_CHANGE_DEFAULT_REASON,
        is_permanent=is_permanent,
        expected_status=expected_status,
        now=now,
    )


def get_grant_time(db: Session, tenant: Tenant) -> Optional[datetime]:
    """Timestamp of the log entry that produced the tenant's current stored status."""
    latest = db.query(CurfewModification).filter(
        CurfewModification.tenant_id == tenant.tenant_id
    ).order_by(CurfewModification.modification_id.desc()).first()
    if latest is not None and latest.new_status == tenant.curfew_status:
        return latest.modified_at
    return tenant.curfew_approved_at


def get_effective_status(db: Session, tenant_id: int, as_of: Optional[datetime] = None) -> str:
    """Curfew status that applies at as_of (default: now), accounting for temporary expiry."""
    tenant, stored = _read_current(db, tenant_id)
    granted_at = None
    if stored == CurfewStatus.APPROVED_TEMPORARY.value:
        granted_at = get_grant_time(db, tenant)
    return effective_status(stored, granted_at, as_of or utc_now())


def expire_temporary_overrides(
    db: Session,
    actor: Actor,
    as_of: Optional[datetime] = None
) -> List[TransitionResult]:
    """
    Reset stored APPROVED_TEMPORARY statuses whose grant window has passed.

    Effective status never depends on this job; it only brings the stored
    field back in line with what effective_status() already reports.
    """
    _require_admin(actor, "reset")
    as_of = as_of or utc_now()
    candidates = db.query(Tenant).filter(
        Tenant.curfew_status == CurfewStatus.APPROVED_TEMPORARY.value
    ).order_by(Tenant.tenant_id).all()

    expired_ids = [
        t.tenant_id for t in candidates
        if effective_status(t.curfew_status, get_grant_time(db, t), as_of) == CurfewStatus.NORMAL.value
    ]
    if not expired_ids:
        logger.info("No temporary curfew approvals to reset")
        return []

    results = _run_batch(
        db,
        expired_ids,
        lambda tenant_id: _apply_transition(
            db, actor, tenant_id, ModificationType.RESET.value,
            reason=AUTO_RESET_REASON,
            expected_status=CurfewStatus.APPROVED_TEMPORARY.value,
            now=as_of,
        )
    )
    logger.info(
        "Reset temporary curfew override for %d of %d tenant(s)",
        sum(1 for r in results if r.success), len(expired_ids)
    )
    return results
