"""Room schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RoomCreate(BaseModel):
    room_number: int = Field(..., gt=0)
    floor: int = Field(1, ge=0)
    description: Optional[str] = None


class RoomResponse(BaseModel):
    room_id: int
    room_number: int
    floor: int
    description: Optional[str] = None
    is_active: bool
    active_tenant_count: int = 0

    model_config = ConfigDict(from_attributes=True)
