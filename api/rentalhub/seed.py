"""Seed an admin account and, outside production, a small demo building."""
import logging
import os
import sys

from sqlalchemy.orm import Session

from rentalhub.core.config import settings
from rentalhub.core.database import SessionLocal
from rentalhub.core.roles import RoleCode
from rentalhub.core.security import get_password_hash
from rentalhub.models import Room, Tenant, User

logger = logging.getLogger(__name__)

DEMO_ROOMS = [
    {"room_number": 101, "floor": 1},
    {"room_number": 102, "floor": 1},
    {"room_number": 201, "floor": 2},
]

DEMO_TENANTS = [
    # (room_number, tenant name, login email or None)
    (101, "Nguyen Van An", "an@example.com"),
    (101, "Tran Thi Binh", None),
    (102, "Le Van Cuong", "cuong@example.com"),
    (201, "Pham Thi Dung", None),
]


def is_production_env() -> bool:
    return settings.ENVIRONMENT.lower() == "production"


def parse_bool_env(value: str | None) -> bool | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y"}:
        return True
    if normalized in {"0", "false", "no", "n"}:
        return False
    return None


def should_seed_demo_data() -> bool:
    override = parse_bool_env(os.getenv("SEED_DEMO_DATA"))
    if override is None:
        return not is_production_env()
    return override


def get_seed_admin_password() -> str | None:
    password = os.getenv("SEED_ADMIN_PASSWORD")
    if password:
        password = password.strip()

    if is_production_env():
        if password == "admin123":
            print("FATAL: SEED_ADMIN_PASSWORD cannot be the default in production.", file=sys.stderr)
            sys.exit(1)
        return password or None

    return password or "admin123"


def seed_admin(db: Session) -> User | None:
    email = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
    admin = db.query(User).filter(User.email == email).first()
    if admin:
        return admin

    password = get_seed_admin_password()
    if not password:
        logger.warning("SEED_ADMIN_PASSWORD not set; skipping admin account")
        return None

    admin = User(
        email=email,
        full_name="Building Admin",
        password_hash=get_password_hash(password),
        role=RoleCode.ADMIN.value,
    )
    db.add(admin)
    db.commit()
    logger.info("Created admin account %s", email)
    return admin


def seed_demo_building(db: Session) -> None:
    rooms = {}
    for room_data in DEMO_ROOMS:
        room = db.query(Room).filter(Room.room_number == room_data["room_number"]).first()
        if not room:
            room = Room(**room_data)
            db.add(room)
            db.flush()
        rooms[room.room_number] = room

    for room_number, name, email in DEMO_TENANTS:
        if db.query(Tenant).filter(Tenant.name == name).first():
            continue
        user = None
        if email:
            user = db.query(User).filter(User.email == email).first()
            if not user:
                user = User(
                    email=email,
                    full_name=name,
                    password_hash=get_password_hash("tenant123"),
                    role=RoleCode.USER.value,
                )
                db.add(user)
                db.flush()
        db.add(Tenant(
            name=name,
            room_id=rooms[room_number].room_id,
            user_id=user.user_id if user else None,
        ))
    db.commit()
    logger.info("Seeded %d rooms and %d tenants", len(DEMO_ROOMS), len(DEMO_TENANTS))


def seed_database() -> None:
    db = SessionLocal()
    try:
        seed_admin(db)
        if should_seed_demo_data():
            seed_demo_building(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    seed_database()
