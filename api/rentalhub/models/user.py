"""User model."""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentalhub.models.base import Base
from rentalhub.core.roles import RoleCode
from rentalhub.core.time import utc_now

if TYPE_CHECKING:
    from rentalhub.models.tenant import Tenant


class User(Base):
    """Login account. May be linked to at most one tenant."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoleCode.USER.value,
        comment="ADMIN or USER"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    tenant: Mapped[Optional["Tenant"]] = relationship(
        "Tenant", back_populates="user", uselist=False,
        foreign_keys="Tenant.user_id"
    )

    __table_args__ = (
        CheckConstraint("role IN ('ADMIN', 'USER')", name="check_user_role_valid"),
    )

    def __repr__(self):
        return f"<User(id={self.user_id}, email={self.email}, role={self.role})>"
