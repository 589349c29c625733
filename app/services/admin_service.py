"""
app/services/admin_service.py — Superadmin operations: user activation and system statistics.
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.db import repository
from app.db.models import User
from app.exceptions import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


def set_user_status(db: Session, admin: User, user_id: int, is_active: bool) -> User:
    """Activate or deactivate a user. Admins cannot deactivate themselves."""
    user = repository.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    if user.id == admin.id and not is_active:
        raise ValidationFailedError("You cannot deactivate your own account.")
    return repository.set_user_active(db, user, is_active)


def system_stats(db: Session) -> dict[str, Any]:
    stats = {"total_users": repository.count_users(db)}
    stats.update(repository.review_stats(db))
    return stats
