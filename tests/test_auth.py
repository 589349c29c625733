"""
tests/test_auth.py — Password hashing, access tokens, login, registration and impersonation.
"""

import jwt
import pytest

from app.db.models import DepartmentType, UserRole
from app.exceptions import (
    DuplicateUserError,
    InactiveAccountError,
    InvalidCredentialsError,
    PermissionDeniedError,
    ValidationFailedError,
)
from app.services import auth_service


# ── Passwords ─────────────────────────────────────────────────────────────────

class TestPasswords:
    def test_hash_round_trip(self):
        stored = auth_service.hash_password("s3cret!")
        assert stored.startswith("pbkdf2_sha256$")
        assert auth_service.verify_password("s3cret!", stored)
        assert not auth_service.verify_password("wrong", stored)

    def test_same_password_gets_new_salt(self):
        assert auth_service.hash_password("abc") != auth_service.hash_password("abc")

    @pytest.mark.parametrize("stored", ["", "plain", "md5$1$aa$bb", "pbkdf2_sha256$x$aa$bb"])
    def test_malformed_hash_never_matches(self, stored):
        assert not auth_service.verify_password("anything", stored)


# ── Tokens ────────────────────────────────────────────────────────────────────

class TestTokens:
    def test_round_trip(self, member):
        payload = auth_service.decode_access_token(auth_service.create_access_token(member))
        assert payload["id"] == member.id
        assert payload["type"] == "department_user"

    def test_expired_token_rejected(self, member):
        token = auth_service.create_access_token(member, expires_minutes=-1)
        with pytest.raises(InvalidCredentialsError):
            auth_service.decode_access_token(token)

    def test_foreign_signature_rejected(self, member):
        token = jwt.encode(
            {"id": member.id, "type": "superadmin"},
            "another-secret-key-that-is-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(InvalidCredentialsError):
            auth_service.decode_access_token(token)

    def test_resolve_inactive_user(self, db, user_factory):
        user = user_factory(username="ghost", is_active=False)
        token = auth_service.create_access_token(user)
        with pytest.raises(InactiveAccountError):
            auth_service.resolve_token_user(db, token)


# ── Login ─────────────────────────────────────────────────────────────────────

class TestLogin:
    def test_success_sets_last_login(self, db, member):
        user, token = auth_service.authenticate_user(db, "MEMBER@example.com", "secret123")
        assert user.id == member.id
        assert user.last_login_at is not None
        assert auth_service.resolve_token_user(db, token).id == member.id

    def test_wrong_password(self, db, member):
        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate_user(db, "member@example.com", "nope")

    def test_unknown_email(self, db):
        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate_user(db, "nobody@example.com", "secret123")

    def test_inactive_account(self, db, user_factory):
        user_factory(username="ghost", is_active=False)
        with pytest.raises(InactiveAccountError):
            auth_service.authenticate_user(db, "ghost@example.com", "secret123")


# ── Registration ─────────────────────────────────────────────────────────────

def register(db, **overrides):
    fields = dict(
        username="newbie",
        email="newbie@example.com",
        password="secret123",
        role=UserRole.DEPARTMENT_HEAD,
        department_type=DepartmentType.OFFICE_SALES,
        company_name="Acme",
    )
    fields.update(overrides)
    return auth_service.register_user(db, **fields)


class TestRegister:
    def test_head_keeps_target(self, db):
        user = register(db, target=50)
        assert user.role == UserRole.DEPARTMENT_HEAD
        assert user.target == 50
        assert auth_service.verify_password("secret123", user.password_hash)

    def test_user_is_linked_to_head(self, db, head):
        user = register(db, role=UserRole.DEPARTMENT_USER, head_user_email=head.email, target=10)
        assert user.head_user_id == head.id
        assert user.target is None

    def test_user_requires_head(self, db):
        with pytest.raises(ValidationFailedError):
            register(db, role=UserRole.DEPARTMENT_USER)

    def test_user_head_must_be_a_head(self, db, member):
        with pytest.raises(ValidationFailedError):
            register(db, role=UserRole.DEPARTMENT_USER, head_user_email=member.email)

    def test_superadmin_cannot_register(self, db):
        with pytest.raises(PermissionDeniedError):
            register(db, role=UserRole.SUPERADMIN)

    def test_duplicate_email(self, db, member):
        with pytest.raises(DuplicateUserError):
            register(db, email="Member@Example.com")

    def test_duplicate_username(self, db, member):
        with pytest.raises(DuplicateUserError):
            register(db, username="member")


# ── Impersonation ────────────────────────────────────────────────────────────

class TestImpersonate:
    def test_superadmin_can_switch_to_head(self, db, superadmin, head):
        target, token = auth_service.impersonate(db, superadmin, head.email)
        assert target.id == head.id
        assert auth_service.decode_access_token(token)["id"] == head.id

    def test_head_can_switch_to_own_member(self, db, head, member):
        target, _ = auth_service.impersonate(db, head, member.email)
        assert target.id == member.id

    def test_head_cannot_switch_to_foreign_member(self, db, head, user_factory):
        other_head = user_factory(username="otherhead", role=UserRole.DEPARTMENT_HEAD)
        stranger = user_factory(username="stranger", head=other_head)
        with pytest.raises(PermissionDeniedError):
            auth_service.impersonate(db, head, stranger.email)

    def test_head_cannot_switch_to_head(self, db, head, user_factory):
        other_head = user_factory(username="otherhead", role=UserRole.DEPARTMENT_HEAD)
        with pytest.raises(PermissionDeniedError):
            auth_service.impersonate(db, head, other_head.email)

    def test_superadmin_is_never_a_target(self, db, superadmin, head):
        with pytest.raises(ValidationFailedError):
            auth_service.impersonate(db, head, superadmin.email)

    def test_inactive_target(self, db, superadmin, user_factory):
        ghost = user_factory(username="ghost", is_active=False)
        with pytest.raises(InactiveAccountError):
            auth_service.impersonate(db, superadmin, ghost.email)


# ── Change password ──────────────────────────────────────────────────────────

class TestChangePassword:
    def test_new_password_replaces_old(self, db, member):
        auth_service.change_password(db, member, "secret123", "fresh-pass")
        user, _ = auth_service.authenticate_user(db, member.email, "fresh-pass")
        assert user.id == member.id
        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate_user(db, member.email, "secret123")

    def test_wrong_current_password(self, db, member):
        with pytest.raises(ValidationFailedError):
            auth_service.change_password(db, member, "not-it", "fresh-pass")
        assert auth_service.verify_password("secret123", member.password_hash)

    def test_same_password_rejected(self, db, member):
        with pytest.raises(ValidationFailedError):
            auth_service.change_password(db, member, "secret123", "secret123")
