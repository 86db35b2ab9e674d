"""Models package."""
from rentalhub.models.base import Base
from rentalhub.models.user import User
from rentalhub.models.room import Room
from rentalhub.models.tenant import Tenant
from rentalhub.models.curfew_modification import CurfewModification
from rentalhub.models.notification import Notification

__all__ = [
    "Base",
    "User",
    "Room",
    "Tenant",
    "CurfewModification",
    "Notification",
]
