"""Curfew override schemas."""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional

from rentalhub.schemas.user import UserBrief

CurfewStatusLiteral = Literal["NORMAL", "PENDING", "APPROVED_TEMPORARY", "APPROVED_PERMANENT"]


class ReasonMixin(BaseModel):
    """Optional free-text reason; blank strings are stored as None."""
    reason: Optional[str] = Field(None, max_length=1000)

    @field_validator('reason')
    @classmethod
    def strip_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class CurfewRequestCreate(ReasonMixin):
    """Request a curfew override for one or more tenants."""
    tenant_ids: List[int] = Field(..., description="Tenants to request for (same room for non-admins)")


class CurfewApproveRequest(BaseModel):
    tenant_ids: List[int]
    is_permanent: bool = False
    expected_status: Optional[CurfewStatusLiteral] = Field(
        None, description="Status shown to the admin; a mismatch fails with 409 instead of applying"
    )


class CurfewRejectRequest(ReasonMixin):
    tenant_ids: List[int]
    expected_status: Optional[CurfewStatusLiteral] = None


class CurfewResetRequest(ReasonMixin):
    tenant_id: int
    expected_status: Optional[CurfewStatusLiteral] = None


class CurfewManualChangeRequest(ReasonMixin):
    tenant_id: int
    new_status: CurfewStatusLiteral
    is_permanent: bool = False
    expected_status: Optional[CurfewStatusLiteral] = None


class TransitionResultResponse(BaseModel):
    """Outcome for one tenant of a batch operation."""
    tenant_id: int
    success: bool
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    modification_id: Optional[int] = None
    error_code: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CurfewBatchResponse(BaseModel):
    succeeded: int
    failed: int
    results: List[TransitionResultResponse]


class CurfewModificationResponse(BaseModel):
    modification_id: int
    tenant_id: int
    modification_type: str
    old_status: Optional[str] = None
    new_status: str
    is_permanent: bool
    reason: Optional[str] = None
    modified_by: int
    modified_by_role: str
    modified_at: datetime
    modifier: Optional[UserBrief] = None

    model_config = ConfigDict(from_attributes=True)


class CurfewStatusResponse(BaseModel):
    """Stored vs effective status. Gate on effective_status, never on stored_status."""
    tenant_id: int
    tenant_name: str
    room_id: int
    is_active: bool
    stored_status: str
    effective_status: str
    effective_status_label: str
    granted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    curfew_requested_at: Optional[datetime] = None
    curfew_approved_at: Optional[datetime] = None
    as_of: datetime


class PendingCurfewRequestResponse(BaseModel):
    tenant_id: int
    tenant_name: str
    room_id: int
    room_number: Optional[int] = None
    floor: Optional[int] = None
    user_id: Optional[int] = None
    curfew_requested_at: Optional[datetime] = None
    latest_request: Optional[CurfewModificationResponse] = None
