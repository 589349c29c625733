"""
api/endpoints/auth_routes.py — Login, registration and identity.

POST /auth/login        — Exchange email + password for an access token
POST /auth/register     — Register a department head or department user
GET  /auth/me           — The authenticated user's profile
POST /auth/impersonate  — Superadmin / department head switches to another user
PUT  /auth/change-password — Replace the current password
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.models import User, UserRole
from app.db.session import get_db
from app.services import auth_service
from api.deps import require_roles, require_user
from api.schemas import (
    ChangePasswordRequest,
    ImpersonateRequest,
    LoginRequest,
    OKResponse,
    RegisterRequest,
    TokenResponse,
    UserOut,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=TokenResponse, summary="Log in")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate with email and password. Returns a bearer token."""
    user, token = auth_service.authenticate_user(db, payload.email, payload.password)
    return TokenResponse(token=token, user=UserOut.model_validate(user))


@router.post("/register", response_model=UserOut, status_code=201, summary="Register a user")
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create a department head or department user.
    Department users must give the email of their department head.
    """
    user = auth_service.register_user(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        department_type=payload.department_type,
        company_name=payload.company_name,
        head_user_email=payload.head_user,
        target=payload.target,
    )
    db.commit()
    return user


@router.get("/me", response_model=UserOut, summary="Current user")
def me(user: User = Depends(require_user)):
    return user


@router.post("/impersonate", response_model=TokenResponse, summary="Switch to another user")
def impersonate(
    payload: ImpersonateRequest,
    actor: User = Depends(require_roles(UserRole.SUPERADMIN, UserRole.DEPARTMENT_HEAD)),
    db: Session = Depends(get_db),
):
    """Issue a token for another user. Heads may only switch to their own department users."""
    target, token = auth_service.impersonate(db, actor, payload.email)
    return TokenResponse(token=token, user=UserOut.model_validate(target))


@router.put("/change-password", response_model=OKResponse, summary="Change password")
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, user, payload.current_password, payload.new_password)
    db.commit()
    return OKResponse(message="Password changed successfully")
