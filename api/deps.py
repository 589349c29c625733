"""
api/deps.py — FastAPI dependencies for authentication and role checks.

    @router.get("/me")
    def me(user: User = Depends(require_user)): ...

    @router.get("/admin-only", dependencies=[Depends(require_roles(UserRole.SUPERADMIN))])
    def admin_only(): ...
"""

import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.db.models import User, UserRole
from app.db.session import get_db
from app.exceptions import AuthError
from app.services.auth_service import resolve_token_user

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "Not authorized to access this route"


def require_user(
    authorization: str = Header(None, description="Bearer <access token>"),
    db: Session = Depends(get_db),
) -> User:
    """Extract the bearer token and load the active user it belongs to."""
    if not authorization:
        raise HTTPException(status_code=401, detail=NOT_AUTHORIZED)

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=401, detail=NOT_AUTHORIZED)

    try:
        return resolve_token_user(db, parts[1].strip())
    except AuthError as exc:
        logger.info("Token rejected: %s", exc)
        raise HTTPException(status_code=401, detail=str(exc))


def require_roles(*roles: UserRole):
    """Factory for role-checking dependencies."""

    def checker(user: User = Depends(require_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"User role {user.role.value} is not authorized to access this route",
            )
        return user

    return checker
