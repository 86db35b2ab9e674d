"""Room routes."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from rentalhub.core.database import get_db
from rentalhub.core.deps import require_admin
from rentalhub.models import Room, Tenant, User
from rentalhub.schemas.room import RoomCreate, RoomResponse

router = APIRouter()


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    room_data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    existing = db.query(Room).filter(Room.room_number == room_data.room_number).first()
    if existing:
        raise HTTPException(
            status_code=400,
            detail=f"Room {room_data.room_number} already exists"
        )
    room = Room(**room_data.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@router.get("/", response_model=List[RoomResponse])
def list_rooms(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    counts = dict(
        db.query(Tenant.room_id, func.count(Tenant.tenant_id))
        .filter(Tenant.is_active == True)
        .group_by(Tenant.room_id)
        .all()
    )
    rooms = db.query(Room).order_by(Room.room_number.asc()).all()
    result = []
    for room in rooms:
        response = RoomResponse.model_validate(room)
        response.active_tenant_count = counts.get(room.room_id, 0)
        result.append(response)
    return result
