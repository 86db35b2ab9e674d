"""
Curfew override status rules.

This module holds the pieces of the curfew workflow that do not touch the
database:
1. Status and modification-type codes
2. The transition table (which modification types are allowed from which status)
3. Effective status computation for temporary approvals (lazy expiry)

Status Definitions:
- NORMAL: No override in effect (default for every tenant)
- PENDING: An override request was submitted and awaits an admin decision
- APPROVED_TEMPORARY: Override granted until the reset hour on the day after the grant
- APPROVED_PERMANENT: Override granted with no expiry

Temporary approvals are never swept by a scheduler to become correct. The
stored status is the last known state; consumers that need to know whether a
tenant may move after curfew right now must go through effective_status().
"""
import enum
from datetime import datetime, time, tzinfo
from typing import Optional, FrozenSet, Dict

from dateutil.relativedelta import relativedelta

from rentalhub.core.config import settings
from rentalhub.core.time import get_local_timezone, to_local, to_naive_utc


class CurfewStatus(str, enum.Enum):
    NORMAL = "NORMAL"
    PENDING = "PENDING"
    APPROVED_TEMPORARY = "APPROVED_TEMPORARY"
    APPROVED_PERMANENT = "APPROVED_PERMANENT"


class ModificationType(str, enum.Enum):
    REQUEST = "REQUEST"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    RESET = "RESET"
    MANUAL_CHANGE = "MANUAL_CHANGE"


CURFEW_STATUS_VALUES = tuple(s.value for s in CurfewStatus)
MODIFICATION_TYPE_VALUES = tuple(t.value for t in ModificationType)

APPROVED_STATUSES: FrozenSet[str] = frozenset({
    CurfewStatus.APPROVED_TEMPORARY.value,
    CurfewStatus.APPROVED_PERMANENT.value,
})

# Statuses a modification type may start from. None means ungated.
ALLOWED_SOURCE_STATUSES: Dict[str, Optional[FrozenSet[str]]] = {
    ModificationType.REQUEST.value: frozenset({CurfewStatus.NORMAL.value}),
    ModificationType.APPROVE.value: frozenset({CurfewStatus.PENDING.value}),
    ModificationType.REJECT.value: frozenset({CurfewStatus.PENDING.value}),
    ModificationType.RESET.value: None,
    ModificationType.MANUAL_CHANGE.value: None,
}

STATUS_LABELS = {
    CurfewStatus.NORMAL.value: "Normal",
    CurfewStatus.PENDING.value: "Pending Approval",
    CurfewStatus.APPROVED_TEMPORARY.value: "Approved (until morning)",
    CurfewStatus.APPROVED_PERMANENT.value: "Approved (permanent)",
}


def normalize_status(value) -> str:
    """Return the status code for an enum member or string, rejecting unknown codes."""
    code = value.value if isinstance(value, CurfewStatus) else str(value).strip().upper()
    if code not in CURFEW_STATUS_VALUES:
        raise ValueError(f"Invalid curfew status: {value}")
    return code


def is_transition_allowed(modification_type: str, current_status: str) -> bool:
    allowed = ALLOWED_SOURCE_STATUSES[modification_type]
    return allowed is None or current_status in allowed


def target_status(modification_type: str, is_permanent: bool = False) -> Optional[str]:
    """Status a gated modification type leads to; None for MANUAL_CHANGE (caller supplies it)."""
    if modification_type == ModificationType.REQUEST.value:
        return CurfewStatus.PENDING.value
    if modification_type == ModificationType.APPROVE.value:
        if is_permanent:
            return CurfewStatus.APPROVED_PERMANENT.value
        return CurfewStatus.APPROVED_TEMPORARY.value
    if modification_type in (ModificationType.REJECT.value, ModificationType.RESET.value):
        return CurfewStatus.NORMAL.value
    return None


def temporary_expiry(
    granted_at: datetime,
    zone: Optional[tzinfo] = None,
    reset_hour: Optional[int] = None
) -> datetime:
    """
    Instant a temporary approval stops applying.

    The grant is valid until reset_hour (06:00 by default) on the local calendar
    day following the grant. Input and output are naive UTC.
    """
    zone = zone or get_local_timezone()
    hour = settings.CURFEW_RESET_HOUR if reset_hour is None else reset_hour
    local_grant = to_local(granted_at, zone)
    next_day = local_grant.date() + relativedelta(days=1)
    expiry_local = datetime.combine(next_day, time(hour=hour), tzinfo=zone)
    return to_naive_utc(expiry_local)


def effective_status(
    stored_status: str,
    granted_at: Optional[datetime],
    as_of: datetime,
    zone: Optional[tzinfo] = None,
    reset_hour: Optional[int] = None
) -> str:
    """
    Compute the curfew status that actually applies at as_of.

    Only APPROVED_TEMPORARY is time-dependent: at or after its expiry instant the
    effective status is NORMAL. A temporary approval with no known grant time is
    treated as expired. All datetimes are naive UTC (aware values are converted).
    """
    stored_status = normalize_status(stored_status)
    if stored_status != CurfewStatus.APPROVED_TEMPORARY.value:
        return stored_status
    if granted_at is None:
        return CurfewStatus.NORMAL.value

    expires_at = temporary_expiry(to_naive_utc(granted_at), zone, reset_hour)
    if to_naive_utc(as_of) >= expires_at:
        return CurfewStatus.NORMAL.value
    return CurfewStatus.APPROVED_TEMPORARY.value
