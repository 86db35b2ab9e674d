"""Room model."""
from typing import List, Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentalhub.models.base import Base

if TYPE_CHECKING:
    from rentalhub.models.tenant import Tenant


class Room(Base):
    __tablename__ = "rooms"

    room_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    floor: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    tenants: Mapped[List["Tenant"]] = relationship("Tenant", back_populates="room")
