"""
app/services/auth_service.py — Passwords, access tokens, login and registration.

Passwords are stored as salted PBKDF2-SHA256 digests:
    pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>

Access tokens are HS256 JWTs carrying {"id": user id, "type": role, "exp": ...}.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.db import repository
from app.db.models import DepartmentType, User, UserRole
from app.exceptions import (
    DuplicateUserError,
    InactiveAccountError,
    InvalidCredentialsError,
    PermissionDeniedError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

_HASH_SCHEME = "pbkdf2_sha256"
_SALT_BYTES = 16


# ── Passwords ─────────────────────────────────────────────────────────────────

def hash_password(password: str, iterations: Optional[int] = None) -> str:
    iterations = iterations or settings.password_hash_iterations
    salt = secrets.token_hex(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return f"{_HASH_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Constant-time check of `password` against a stored hash. Malformed hashes never match."""
    try:
        scheme, iterations, salt, expected = stored.split("$", 3)
        rounds = int(iterations)
    except (ValueError, AttributeError):
        return False
    if scheme != _HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), rounds)
    return hmac.compare_digest(digest.hex(), expected)


# ── Tokens ────────────────────────────────────────────────────────────────────

def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.jwt_expires_minutes
    )
    payload = {"id": user.id, "type": user.role.value, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the payload.

    Raises:
        InvalidCredentialsError: for any malformed, tampered or expired token.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise InvalidCredentialsError("Not authorized to access this route") from exc
    if "id" not in payload:
        raise InvalidCredentialsError("Not authorized to access this route")
    return payload


def resolve_token_user(db: Session, token: str) -> User:
    """Map a bearer token to an active user."""
    payload = decode_access_token(token)
    user = repository.get_user_by_id(db, payload["id"])
    if not user:
        raise InvalidCredentialsError("User not found")
    if not user.is_active:
        raise InactiveAccountError("User account is deactivated")
    return user


# ── Login / registration ──────────────────────────────────────────────────────

def authenticate_user(db: Session, email: str, password: str) -> tuple[User, str]:
    """
    Check credentials and issue an access token.

    Returns:
        (user, token)

    Raises:
        InvalidCredentialsError: unknown email or wrong password.
        InactiveAccountError:    the account has been deactivated.
    """
    user = repository.get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InactiveAccountError()

    repository.touch_last_login(db, user)
    logger.info("User %d logged in (%s)", user.id, user.role.value)
    return user, create_access_token(user)


def register_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: UserRole,
    department_type: DepartmentType,
    company_name: str,
    head_user_email: Optional[str] = None,
    target: Optional[int] = None,
) -> User:
    """
    Register a department head or department user.

    Department users must name an existing, active department head.
    Superadmins are never created here; see scripts/setup_db.py.
    """
    if role == UserRole.SUPERADMIN:
        raise PermissionDeniedError("Superadmin accounts cannot be self-registered.")
    if repository.get_user_by_email(db, email):
        raise DuplicateUserError(f"Email {email} is already registered.")
    if repository.get_user_by_username(db, username):
        raise DuplicateUserError(f"Username {username} is already taken.")

    head_user_id = None
    if role == UserRole.DEPARTMENT_USER:
        if not head_user_email:
            raise ValidationFailedError("Head user is required for department users.")
        head = repository.get_user_by_email(db, head_user_email)
        if not head or head.role != UserRole.DEPARTMENT_HEAD or not head.is_active:
            raise ValidationFailedError(f"No active department head with email {head_user_email}.")
        head_user_id = head.id

    return repository.create_user(
        db,
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        department_type=department_type,
        company_name=company_name,
        head_user_id=head_user_id,
        target=target if role == UserRole.DEPARTMENT_HEAD else None,
    )


def change_password(db: Session, user: User, current_password: str, new_password: str) -> User:
    """Replace the user's password after checking the current one."""
    if not verify_password(current_password, user.password_hash):
        logger.info("Rejected password change for user %d", user.id)
        raise ValidationFailedError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationFailedError("New password must differ from the current password")
    repository.set_password_hash(db, user, hash_password(new_password))
    logger.info("User %d changed their password", user.id)
    return user


def impersonate(db: Session, actor: User, target_email: str) -> tuple[User, str]:
    """
    Issue a token for another user on behalf of `actor`.

    A superadmin may switch to any department head or user; a department
    head only to the department users that report to them.
    """
    target = repository.get_user_by_email(db, target_email)
    if not target or target.role == UserRole.SUPERADMIN:
        raise ValidationFailedError("Target user not found")
    if not target.is_active:
        raise InactiveAccountError("Target user account is deactivated")

    if actor.role == UserRole.DEPARTMENT_HEAD:
        if target.role != UserRole.DEPARTMENT_USER:
            raise PermissionDeniedError("Department head can only impersonate department users")
        if target.head_user_id != actor.id:
            raise PermissionDeniedError("User does not belong to this department head")
    elif actor.role != UserRole.SUPERADMIN:
        raise PermissionDeniedError("Invalid impersonation token")

    logger.info("User %d switched to user %d (%s)", actor.id, target.id, target.role.value)
    return target, create_access_token(target)
