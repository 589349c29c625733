"""
scripts/setup_db.py — Initialize the database schema and seed data.

Run once before starting the application for the first time:
    python scripts/setup_db.py

Creates all tables defined in app/db/models.py via SQLAlchemy metadata,
seeds the default review criteria for every category and, when
SUPERADMIN_PASSWORD is set, the superadmin account. Safe to re-run:
existing criteria and users are left untouched.
"""

import logging
import os
import sys

# Ensure the project root is on the path so we can import `app`
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

from app.config import settings
from app.db import repository
from app.db.models import Base, ReviewCategory, UserRole
from app.db.session import engine, get_session
from app.logging_config import setup_logging
from app.services.auth_service import hash_password

logger = logging.getLogger("setup_db")

# (name, weight) per category. Names must match the heuristic registry in
# app/review/heuristics.py or the criterion falls back to the generic score.
DEFAULT_CRITERIA: dict[ReviewCategory, list[tuple[str, float]]] = {
    ReviewCategory.ACADEMIC: [
        ("Content Quality", 1.5),
        ("Originality", 1.2),
        ("Grammar and Spelling", 1.0),
        ("Structure and Organization", 1.0),
    ],
    ReviewCategory.BUSINESS: [
        ("Business Logic", 1.5),
        ("Financial Viability", 1.3),
        ("Market Analysis", 1.2),
        ("Risk Assessment", 1.0),
    ],
    ReviewCategory.CREATIVE: [
        ("Creativity", 1.5),
        ("Originality", 1.3),
        ("Artistic Merit", 1.2),
        ("Technical Skill", 1.0),
    ],
    ReviewCategory.TECHNICAL: [
        ("Technical Accuracy", 1.5),
        ("Code Quality", 1.3),
        ("Security", 1.2),
        ("Performance", 1.0),
        ("Documentation", 0.8),
    ],
    ReviewCategory.OTHER: [
        ("Content Quality", 1.0),
        ("Grammar and Spelling", 1.0),
        ("Structure and Organization", 1.0),
    ],
}


def seed_criteria(db: Session) -> int:
    """Insert missing default criteria. Returns how many were created."""
    created = 0
    for category, criteria in DEFAULT_CRITERIA.items():
        for name, weight in criteria:
            if repository.criterion_exists(db, name, category):
                continue
            repository.create_criterion(db, name=name, weight=weight, category=category)
            created += 1
    return created


def seed_superadmin(db: Session) -> bool:
    """Create the superadmin from settings if configured and absent."""
    if not settings.superadmin_password:
        logger.warning("SUPERADMIN_PASSWORD not set; skipping superadmin creation.")
        return False
    if repository.get_user_by_email(db, settings.superadmin_email):
        logger.info("Superadmin %s already exists.", settings.superadmin_email)
        return False
    repository.create_user(
        db,
        username=settings.superadmin_username,
        email=settings.superadmin_email,
        password_hash=hash_password(settings.superadmin_password),
        role=UserRole.SUPERADMIN,
    )
    return True


def setup_db() -> None:
    logger.info("Connecting to database %s...", settings.database_url.split("@")[-1][:40])
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Connection successful.")

    Base.metadata.create_all(bind=engine)
    logger.info("Tables in database: %s", inspect(engine).get_table_names())

    with get_session() as db:
        created = seed_criteria(db)
        logger.info("Seeded %d review criteria.", created)
        if seed_superadmin(db):
            logger.info("Superadmin %s created.", settings.superadmin_email)

    logger.info("Database setup complete.")


if __name__ == "__main__":
    setup_logging()
    setup_db()
