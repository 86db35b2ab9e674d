"""Notification history routes."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rentalhub.core.database import get_db
from rentalhub.core.deps import get_current_user
from rentalhub.models import Notification, User
from rentalhub.schemas.notification import MarkReadRequest, NotificationListResponse

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
def list_my_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    base = db.query(Notification).filter(Notification.user_id == current_user.user_id)
    notifications = base.order_by(
        Notification.created_at.desc(),
        Notification.notification_id.desc()
    ).offset((page - 1) * limit).limit(limit).all()
    return {
        "notifications": notifications,
        "total": base.count(),
        "unread_count": base.filter(Notification.read_status == False).count(),
        "page": page,
        "limit": limit,
    }


@router.post("/read")
def mark_notifications_read(
    read_data: MarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark the caller's own notifications as read; ids of other users are ignored."""
    updated = db.query(Notification).filter(
        Notification.notification_id.in_(read_data.notification_ids),
        Notification.user_id == current_user.user_id
    ).update({"read_status": True}, synchronize_session=False)
    db.commit()
    return {"updated": updated}


@router.post("/read-all")
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    updated = db.query(Notification).filter(
        Notification.user_id == current_user.user_id,
        Notification.read_status == False
    ).update({"read_status": True}, synchronize_session=False)
    db.commit()
    return {"updated": updated}
