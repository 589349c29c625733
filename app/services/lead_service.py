"""
app/services/lead_service.py — Business rules for leads.

Who can see what is decided in the repository (`_visible_leads`); this
layer turns "not visible" into NotFoundError and enforces the rules
around updates, transfers and imports.
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.db import repository
from app.db.models import Lead, User
from app.exceptions import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

MAX_IMPORT_ROWS = 500


def get_lead(db: Session, user: User, lead_id: int) -> Lead:
    lead = repository.get_visible_lead(db, user, lead_id)
    if not lead:
        raise NotFoundError("Lead", lead_id)
    return lead


def create_lead(db: Session, user: User, data: dict[str, Any]) -> Lead:
    return repository.create_lead(db, owner=user, data=data)


def update_lead(db: Session, user: User, lead_id: int, changes: dict[str, Any]) -> Lead:
    if not changes:
        raise ValidationFailedError("No valid fields to update")
    lead = get_lead(db, user, lead_id)
    return repository.update_lead(db, lead, changes)


def delete_lead(db: Session, user: User, lead_id: int) -> None:
    lead = get_lead(db, user, lead_id)
    repository.delete_lead(db, lead)


def transfer_lead(db: Session, user: User, lead_id: int, to_user_id: int, reason: str = "") -> Lead:
    """
    Hand a lead over to another active user.

    Raises:
        NotFoundError:         the lead is not visible to `user` or the target doesn't exist.
        ValidationFailedError: the target is inactive or is the caller.
    """
    lead = get_lead(db, user, lead_id)
    target = repository.get_user_by_id(db, to_user_id)
    if not target:
        raise NotFoundError("User", to_user_id)
    if not target.is_active:
        raise ValidationFailedError(f"User {to_user_id} is deactivated.")
    if target.id == user.id:
        raise ValidationFailedError("Cannot transfer a lead to yourself.")
    return repository.transfer_lead(db, lead, from_user=user, to_user=target, reason=reason or "")


def import_leads(db: Session, user: User, rows: list[dict[str, Any]]) -> int:
    """
    Insert already-parsed lead rows for `user`.

    Returns:
        Number of leads imported.
    """
    if not rows:
        raise ValidationFailedError("No leads data provided")
    if len(rows) > MAX_IMPORT_ROWS:
        raise ValidationFailedError(f"Cannot import more than {MAX_IMPORT_ROWS} leads at once.")
    leads = repository.bulk_create_leads(db, owner=user, rows=rows)
    return len(leads)
