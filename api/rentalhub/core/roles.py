"""Role normalization helpers and canonical mappings."""
from __future__ import annotations

import enum
from typing import Optional, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from rentalhub.models.user import User


class RoleCode(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


ROLE_CODE_TO_DISPLAY: Dict[str, str] = {
    RoleCode.ADMIN.value: "Admin",
    RoleCode.USER.value: "User",
}

ROLE_DISPLAY_TO_CODE: Dict[str, str] = {
    "admin": RoleCode.ADMIN.value,
    "administrator": RoleCode.ADMIN.value,
    "landlord": RoleCode.ADMIN.value,
    "user": RoleCode.USER.value,
    "tenant": RoleCode.USER.value,
}


def normalize_role_code(value: str | None) -> Optional[str]:
    if not value:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    upper = normalized.upper().replace(" ", "_")
    if upper in RoleCode.__members__:
        return RoleCode[upper].value
    return ROLE_DISPLAY_TO_CODE.get(normalized.lower())


def get_role_display(role_code: str | None, fallback: str | None = None) -> Optional[str]:
    if not role_code:
        return fallback
    return ROLE_CODE_TO_DISPLAY.get(role_code, fallback)


def is_admin_role(role_code: str | None) -> bool:
    return normalize_role_code(role_code) == RoleCode.ADMIN.value


def is_admin(user: "User") -> bool:
    return is_admin_role(user.role)


def build_capabilities(role_code: str | None) -> dict:
    admin = role_code == RoleCode.ADMIN.value
    return {
        "is_admin": admin,
        "can_request_curfew_override": True,
        "can_review_curfew_requests": admin,
        "can_change_curfew_status": admin,
        "can_manage_tenants": admin,
        "can_manage_rooms": admin,
    }
