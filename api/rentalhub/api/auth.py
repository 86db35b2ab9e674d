"""Authentication routes."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from rentalhub.core.database import get_db
from rentalhub.core.deps import get_current_user, require_admin
from rentalhub.core.roles import RoleCode, build_capabilities, normalize_role_code
from rentalhub.core.security import create_access_token, get_password_hash, verify_password
from rentalhub.models.user import User
from rentalhub.schemas.user import LoginRequest, Token, UserCreate, UserResponse

router = APIRouter()


def get_user_response(user: User) -> dict:
    """Convert user to response dict with tenant link and capabilities."""
    tenant = user.tenant
    return {
        "user_id": user.user_id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "is_active": user.is_active,
        "tenant_id": tenant.tenant_id if tenant else None,
        "room_id": tenant.room_id if tenant else None,
        "capabilities": build_capabilities(user.role),
    }


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login endpoint."""
    user = db.query(User).filter(User.email == login_data.email).first()

    if not user or not user.is_active or not verify_password(login_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    access_token = create_access_token(user.email, role=user.role)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user."""
    return get_user_response(current_user)


@router.get("/users", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    users = db.query(User).order_by(User.full_name.asc()).all()
    return [get_user_response(u) for u in users]


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a login account (Admin only)."""
    role_code = normalize_role_code(user_data.role)
    if role_code is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid role: {user_data.role}. Use one of: {', '.join(r.value for r in RoleCode)}"
        )

    existing = db.query(User).filter(User.email == user_data.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=user_data.email,
        full_name=user_data.full_name,
        password_hash=get_password_hash(user_data.password),
        role=role_code,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return get_user_response(user)
