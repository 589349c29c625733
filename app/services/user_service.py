"""
app/services/user_service.py — Superadmin management of department heads and users.

Rules enforced here (the HTTP layer only validates shapes):
  - Only department heads and department users are managed; superadmins
    are invisible to these operations.
  - Usernames and emails are unique.
  - A company has at most one head per department type.
  - A department user reports to a head of the same company and department.
  - A head with users under them can be neither deleted nor demoted.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.db import repository
from app.db.models import DepartmentType, User, UserRole
from app.exceptions import DuplicateUserError, InvalidStateError, NotFoundError, ValidationFailedError
from app.services.auth_service import hash_password

logger = logging.getLogger(__name__)

MANAGED_ROLES = (UserRole.DEPARTMENT_HEAD, UserRole.DEPARTMENT_USER)


def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


def _check_unique(db: Session, username: Optional[str], email: Optional[str], user: Optional[User] = None) -> None:
    if email:
        existing = repository.get_user_by_email(db, email)
        if existing and existing is not user:
            raise DuplicateUserError(f"Email {email} is already registered.")
    if username:
        existing = repository.get_user_by_username(db, username)
        if existing and existing is not user:
            raise DuplicateUserError(f"Username {username} is already taken.")


def _check_head_slot(
    db: Session,
    company_name: str,
    department_type: DepartmentType,
    user: Optional[User] = None,
) -> None:
    heads = [h for h in repository.get_department_heads(db, company_name, department_type) if h is not user]
    if heads:
        raise ValidationFailedError(
            f"{company_name} already has a {department_type.value} department head."
        )


def _resolve_head(db: Session, head_email: str, company_name: str, department_type: DepartmentType) -> User:
    head = repository.get_user_by_email(db, head_email)
    if not head:
        raise ValidationFailedError(f"Head user {head_email} does not exist.")
    if head.role != UserRole.DEPARTMENT_HEAD:
        raise ValidationFailedError(f"{head_email} is not a department head.")
    if not _same_text(head.company_name, company_name):
        raise ValidationFailedError("Head user must be from the same company.")
    if head.department_type != department_type:
        raise ValidationFailedError("Head user must be from the same department.")
    return head


def get_managed_user(db: Session, user_id: int) -> User:
    user = repository.get_user_by_id(db, user_id)
    if not user or user.role not in MANAGED_ROLES:
        raise NotFoundError("Department user", user_id)
    return user


def create_user(
    db: Session,
    admin: User,
    username: str,
    email: str,
    password: str,
    role: UserRole,
    department_type: DepartmentType,
    company_name: str,
    head_user_email: Optional[str] = None,
    target: Optional[int] = None,
) -> User:
    """Create a department head or department user on a superadmin's behalf."""
    if role not in MANAGED_ROLES:
        raise ValidationFailedError("Only department heads and department users can be created here.")
    _check_unique(db, username, email)

    head_user_id = None
    if role == UserRole.DEPARTMENT_HEAD:
        _check_head_slot(db, company_name, department_type)
    else:
        if not head_user_email:
            raise ValidationFailedError("Head user is required for department users.")
        head_user_id = _resolve_head(db, head_user_email, company_name, department_type).id

    user = repository.create_user(
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
    logger.info("Admin %d created %s %d (%s)", admin.id, role.value, user.id, user.email)
    return user


def list_users(
    db: Session,
    role: Optional[UserRole] = None,
    department_type: Optional[DepartmentType] = None,
    company_name: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[User], int]:
    if role == UserRole.SUPERADMIN:
        return [], 0
    return repository.list_users(
        db,
        role=role,
        is_active=is_active,
        department_type=department_type,
        company_name=company_name,
        search=search,
        exclude_superadmins=True,
        page=page,
        limit=limit,
    )


def update_user(db: Session, admin: User, user_id: int, changes: dict[str, Any]) -> User:
    """
    Apply a partial update.

    `changes` may carry `head_user` (an email) instead of `head_user_id`.
    The head link, the one-head-per-department rule and uniqueness are
    re-checked against the user's resulting company, department and role.
    """
    if not changes:
        raise ValidationFailedError("No fields to update.")
    user = get_managed_user(db, user_id)
    changes = dict(changes)

    role = changes.get("role", user.role)
    if role not in MANAGED_ROLES:
        raise ValidationFailedError("Users cannot be promoted to superadmin.")
    company_name = changes.get("company_name", user.company_name)
    department_type = changes.get("department_type", user.department_type)

    _check_unique(db, changes.get("username"), changes.get("email"), user)

    members = repository.get_users_under_head(db, user.id)
    head_email = changes.pop("head_user", None)

    if role == UserRole.DEPARTMENT_HEAD:
        if user.role != UserRole.DEPARTMENT_HEAD or "company_name" in changes or "department_type" in changes:
            _check_head_slot(db, company_name, department_type, user)
        if members and (
            not _same_text(company_name, user.company_name) or department_type != user.department_type
        ):
            raise InvalidStateError("Cannot move a department head who still has users.")
        changes["head_user_id"] = None
    else:
        if members:
            raise InvalidStateError("Cannot demote a department head who still has users.")
        if head_email:
            changes["head_user_id"] = _resolve_head(db, head_email, company_name, department_type).id
        elif user.head is not None:
            _resolve_head(db, user.head.email, company_name, department_type)
        else:
            raise ValidationFailedError("Head user is required for department users.")
        changes["target"] = None

    repository.update_user(db, user, changes)
    logger.info("Admin %d updated user %d (%s)", admin.id, user.id, sorted(changes))
    return user


def delete_user(db: Session, admin: User, user_id: int) -> None:
    user = get_managed_user(db, user_id)
    if repository.get_users_under_head(db, user.id):
        raise InvalidStateError("Cannot delete department head with active subordinates.")
    repository.delete_user(db, user)
    logger.info("Admin %d deleted user %d", admin.id, user_id)


def department_heads(db: Session, company_name: str, department_type: DepartmentType) -> list[User]:
    return repository.get_department_heads(db, company_name, department_type)


def users_under_head(db: Session, head_id: int) -> list[User]:
    head = repository.get_user_by_id(db, head_id)
    if not head or head.role != UserRole.DEPARTMENT_HEAD:
        raise NotFoundError("Department head", head_id)
    return repository.get_users_under_head(db, head_id)


def user_stats(db: Session) -> dict[str, Any]:
    return repository.user_stats(db)
