"""
Curfew notifications.

Notifications are stored as in-app history rows for the recipients. Push
delivery is handled outside this service and reads from the same history.

Dispatch is best-effort: it runs after the curfew transition has been
committed, and any failure is logged and swallowed so it can never undo or
fail the transition that triggered it.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from rentalhub.core.curfew_status import ModificationType
from rentalhub.core.roles import RoleCode
from rentalhub.models.notification import Notification
from rentalhub.models.tenant import Tenant
from rentalhub.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class NotificationTemplate:
    title: str
    message: str
    notification_type: str
    data: dict = field(default_factory=dict)


@dataclass
class CurfewEvent:
    """Outcome of a successful curfew transition, as seen by the dispatcher."""
    tenant_id: int
    modification_type: str
    new_status: str
    reason: Optional[str] = None
    is_permanent: bool = False


def curfew_request_template(
    requester_name: str,
    room_number: Optional[int],
    tenant_names: str,
    reason: Optional[str]
) -> NotificationTemplate:
    room_label = f"Room {room_number}" if room_number is not None else "No room"
    message = f"{requester_name} ({room_label}) requests curfew override for: {tenant_names}"
    if reason:
        message += f". Reason: {reason}"
    return NotificationTemplate(
        title="Curfew Override Request",
        message=message,
        notification_type="curfew_request",
        data={"roomNumber": str(room_number or ""), "action": "review_curfew"},
    )


def curfew_approved_template(room_number: Optional[int], is_permanent: bool, tenant_id: int) -> NotificationTemplate:
    if is_permanent:
        message = "Your curfew override request has been approved permanently."
    else:
        message = "Your curfew override request has been approved. Valid until 6:00 AM."
    return NotificationTemplate(
        title="Curfew Override Approved",
        message=message,
        notification_type="curfew_approved",
        data={"roomNumber": str(room_number or ""), "tenantId": str(tenant_id), "action": "view_curfew"},
    )


def curfew_rejected_template(room_number: Optional[int], reason: Optional[str], tenant_id: int) -> NotificationTemplate:
    message = "Your curfew override request has been rejected."
    if reason:
        message += f" Reason: {reason}"
    return NotificationTemplate(
        title="Curfew Override Rejected",
        message=message,
        notification_type="curfew_rejected",
        data={
            "roomNumber": str(room_number or ""),
            "tenantId": str(tenant_id),
            "reason": reason or "",
            "action": "view_curfew",
        },
    )


def send_to_users(db: Session, user_ids: Iterable[int], template: NotificationTemplate) -> int:
    """Store one notification per recipient and commit. Returns the number stored."""
    recipients = sorted(set(user_ids))
    for user_id in recipients:
        db.add(Notification(
            user_id=user_id,
            title=template.title,
            message=template.message,
            notification_type=template.notification_type,
            data=template.data,
        ))
    db.commit()
    return len(recipients)


def get_admin_user_ids(db: Session) -> List[int]:
    rows = db.query(User.user_id).filter(
        User.role == RoleCode.ADMIN.value,
        User.is_active == True
    ).all()
    return [row.user_id for row in rows]


def _dispatch(db: Session, description: str, user_ids: List[int], template: NotificationTemplate) -> int:
    if not user_ids:
        logger.info("No recipients for %s notification", description)
        return 0
    try:
        sent = send_to_users(db, user_ids, template)
    except Exception:
        db.rollback()
        logger.exception("Failed to dispatch %s notification to %d user(s)", description, len(user_ids))
        return 0
    logger.info("Dispatched %s notification to %d user(s)", description, sent)
    return sent


def load_requested_tenants(db: Session, tenant_ids: List[int]) -> List[Tenant]:
    return db.query(Tenant).filter(Tenant.tenant_id.in_(tenant_ids)).order_by(Tenant.name).all()


def notify_curfew_request(
    db: Session,
    requester_id: int,
    tenant_ids: List[int],
    reason: Optional[str],
    requester: Optional[User] = None
) -> int:
    """Tell every active admin that tenants are waiting for a decision."""
    try:
        if requester is None:
            requester = db.query(User).filter(User.user_id == requester_id).first()
        if requester is None:
            logger.warning("Requester %s not found; skipping curfew request notification", requester_id)
            return 0
        tenants = load_requested_tenants(db, tenant_ids)
        admin_ids = get_admin_user_ids(db)
        room = requester.tenant.room if requester.tenant else None
        template = curfew_request_template(
            requester.full_name,
            room.room_number if room else None,
            ", ".join(t.name for t in tenants),
            reason,
        )
    except Exception:
        db.rollback()
        logger.exception("Failed to prepare curfew request notification")
        return 0
    return _dispatch(db, "curfew request", admin_ids, template)


def notify_curfew_decision(db: Session, event: CurfewEvent) -> int:
    """Tell the tenant's linked user about an approval or rejection."""
    try:
        tenant = db.query(Tenant).filter(Tenant.tenant_id == event.tenant_id).first()
        if tenant is None or tenant.user_id is None:
            return 0
        room_number = tenant.room.room_number if tenant.room else None
        if event.modification_type == ModificationType.APPROVE.value:
            template = curfew_approved_template(room_number, event.is_permanent, event.tenant_id)
        elif event.modification_type == ModificationType.REJECT.value:
            template = curfew_rejected_template(room_number, event.reason, event.tenant_id)
        else:
            return 0
        recipients = [tenant.user_id]
    except Exception:
        db.rollback()
        logger.exception("Failed to prepare curfew decision notification for tenant %s", event.tenant_id)
        return 0
    return _dispatch(db, f"curfew {event.modification_type.lower()}", recipients, template)
