"""
tests/conftest.py — Shared pytest configuration and fixtures.

Sets dummy environment variables BEFORE any app module is imported,
so that pydantic-settings doesn't fail on missing required fields.
"""

import os
import pytest

# ── Set dummy env vars before any app module is imported ─────────────────────
# This runs at collection time, before tests execute.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-bytes-for-hs256")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import sqlalchemy as sa
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import repository
from app.db.models import Base, DepartmentType, ReviewCategory, UserRole
from app.services.auth_service import hash_password


# ── In-memory DB ──────────────────────────────────────────────────────────────

@pytest.fixture
def session_factory():
    """
    A sessionmaker over a fresh in-memory SQLite database.

    StaticPool keeps a single connection so every session (and the thread
    pool used by the criteria lookup) sees the same database. SQLite
    doesn't support PostgreSQL native ENUMs, so native_enum is switched off
    while the tables are created.
    """
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, sa.Enum):
                col.type.native_enum = False

    engine = sa.create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()
        # Restore native_enum so production code is unaffected
        for table in Base.metadata.tables.values():
            for col in table.columns:
                if isinstance(col.type, sa.Enum):
                    col.type.native_enum = True


@pytest.fixture
def db(session_factory):
    """A session on the test database."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def background_sessions(session_factory, monkeypatch):
    """Point get_session() (used by background review processing) at the test database."""
    monkeypatch.setattr("app.db.session.SessionLocal", session_factory)
    return session_factory


# ── Data helpers ──────────────────────────────────────────────────────────────

def make_user(
    db,
    username="alice",
    email=None,
    role=UserRole.DEPARTMENT_USER,
    head=None,
    password="secret123",
    is_active=True,
):
    user = repository.create_user(
        db,
        username=username,
        email=email or f"{username}@example.com",
        password_hash=hash_password(password),
        role=role,
        department_type=None if role == UserRole.SUPERADMIN else DepartmentType.TELESALES,
        company_name=None if role == UserRole.SUPERADMIN else "Acme",
        head_user_id=head.id if head else None,
    )
    if not is_active:
        repository.set_user_active(db, user, False)
    return user


@pytest.fixture
def superadmin(db):
    return make_user(db, username="root", role=UserRole.SUPERADMIN)


@pytest.fixture
def head(db):
    return make_user(db, username="head", role=UserRole.DEPARTMENT_HEAD)


@pytest.fixture
def member(db, head):
    return make_user(db, username="member", role=UserRole.DEPARTMENT_USER, head=head)


@pytest.fixture
def technical_criteria(db):
    """Code Quality (weight 2) and Security (weight 1) for the technical category."""
    code = repository.create_criterion(db, "Code Quality", 2.0, ReviewCategory.TECHNICAL)
    security = repository.create_criterion(db, "Security", 1.0, ReviewCategory.TECHNICAL)
    db.commit()
    return code, security


@pytest.fixture
def user_factory(db):
    """Create extra users on the test session: user_factory(username="bob", head=head)."""

    def factory(**kwargs):
        return make_user(db, **kwargs)

    return factory
