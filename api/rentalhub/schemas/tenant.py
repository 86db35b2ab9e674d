"""Tenant schemas."""
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class TenantCreate(BaseModel):
    """Onboarding a tenant. Curfew status always starts at NORMAL."""
    name: str = Field(..., min_length=1, max_length=255)
    room_id: int
    phone: Optional[str] = None
    user_id: Optional[int] = None
    move_in_date: Optional[date] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v.strip()


class TenantMoveOut(BaseModel):
    move_out_date: Optional[date] = None


class TenantResponse(BaseModel):
    tenant_id: int
    name: str
    phone: Optional[str] = None
    room_id: int
    user_id: Optional[int] = None
    move_in_date: Optional[date] = None
    move_out_date: Optional[date] = None
    is_active: bool
    curfew_status: str
    effective_curfew_status: Optional[str] = None
    curfew_requested_at: Optional[datetime] = None
    curfew_approved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
