"""Curfew Modification - append-only audit trail of curfew status changes."""
from __future__ import annotations

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, ForeignKey, Text, Boolean, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentalhub.models.base import Base
from rentalhub.core.time import utc_now

if TYPE_CHECKING:
    from rentalhub.models.tenant import Tenant
    from rentalhub.models.user import User


class CurfewModification(Base):
    """One status-changing event for a tenant's curfew override.

    Rows are never updated or deleted; a correction is a new row. The newest
    row's new_status always equals tenants.curfew_status for that tenant.
    """
    __tablename__ = "curfew_modifications"

    modification_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    modification_type: Mapped[str] = mapped_column(
        String(20), nullable=False,
        comment="REQUEST, APPROVE, REJECT, RESET, or MANUAL_CHANGE"
    )
    old_status: Mapped[Optional[str]] = mapped_column(
        String(30), nullable=True,
        comment="Previous curfew status (NULL for a tenant's first entry)"
    )
    new_status: Mapped[str] = mapped_column(String(30), nullable=False)
    is_permanent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
        comment="Only meaningful for APPROVE and MANUAL_CHANGE"
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    modified_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id"), nullable=False
    )
    modified_by_role: Mapped[str] = mapped_column(
        String(20), nullable=False,
        comment="Role of the actor at the time of the change"
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, index=True
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="curfew_modifications")
    modifier: Mapped["User"] = relationship("User", foreign_keys=[modified_by])

    __table_args__ = (
        CheckConstraint(
            "modification_type IN ('REQUEST', 'APPROVE', 'REJECT', 'RESET', 'MANUAL_CHANGE')",
            name="check_curfew_modification_type_valid"
        ),
        Index("ix_curfew_modifications_tenant_modified", "tenant_id", "modified_at"),
    )

    def __repr__(self):
        return (
            f"<CurfewModification(id={self.modification_id}, tenant_id={self.tenant_id}, "
            f"type={self.modification_type}, {self.old_status}->{self.new_status})>"
        )
