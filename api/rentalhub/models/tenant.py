"""Tenant model."""
from __future__ import annotations

from datetime import datetime, date
from typing import List, Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean, DateTime, Date, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentalhub.models.base import Base
from rentalhub.core.curfew_status import CurfewStatus
from rentalhub.core.time import utc_now

if TYPE_CHECKING:
    from rentalhub.models.room import Room
    from rentalhub.models.user import User
    from rentalhub.models.curfew_modification import CurfewModification


class Tenant(Base):
    """A person occupying a room.

    curfew_status is a denormalized copy of the newest curfew_modifications
    row for the tenant. It is written only by the curfew workflow engine
    (rentalhub.core.curfew_workflow), together with the log row, in one
    transaction. Moving out sets is_active=False and leaves curfew_status as-is.
    """
    __tablename__ = "tenants"

    tenant_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rooms.room_id", ondelete="RESTRICT"),
        nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True, unique=True,
        comment="Linked login account (optional)"
    )
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    move_out_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    curfew_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=CurfewStatus.NORMAL.value, index=True
    )
    curfew_requested_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    curfew_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    curfew_approved_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    # Relationships
    room: Mapped["Room"] = relationship("Room", back_populates="tenants")
    user: Mapped[Optional["User"]] = relationship(
        "User", back_populates="tenant", foreign_keys=[user_id]
    )
    approver: Mapped[Optional["User"]] = relationship("User", foreign_keys=[curfew_approved_by])
    curfew_modifications: Mapped[List["CurfewModification"]] = relationship(
        "CurfewModification", back_populates="tenant",
        order_by="CurfewModification.modified_at.desc()"
    )

    __table_args__ = (
        CheckConstraint(
            "curfew_status IN ('NORMAL', 'PENDING', 'APPROVED_TEMPORARY', 'APPROVED_PERMANENT')",
            name="check_tenant_curfew_status_valid"
        ),
    )

    def __repr__(self):
        return f"<Tenant(id={self.tenant_id}, name={self.name}, curfew={self.curfew_status}, active={self.is_active})>"
