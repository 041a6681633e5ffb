"""Auth, sessions and role permissions."""

from datetime import timedelta

import pytest

from stockroom.errors import DuplicateEntry, ValidationError
from stockroom.models import SessionToken
from stockroom.permissions import ROLE_PERMISSIONS, has_permission
from stockroom.services import auth_service, session_service
from stockroom.time_utils import utcnow


@pytest.mark.parametrize("password", ["short1", "allletters", "1234567890", ""])
def test_weak_passwords_rejected(password):
    with pytest.raises(ValidationError):
        auth_service.validate_password_strength(password)


def test_create_and_authenticate(db_session):
    user = auth_service.create_user("alice", "Secret123", role="manager", email="alice@test.local")

    assert user.password_hash != "Secret123"
    assert auth_service.authenticate("alice", "Secret123").id == user.id
    assert auth_service.authenticate("alice", "Secret124") is None
    assert auth_service.authenticate("nobody", "Secret123") is None


def test_duplicate_username(db_session, staff_user):
    with pytest.raises(DuplicateEntry):
        auth_service.create_user("staff_user", "Secret123")


def test_unknown_role(db_session):
    with pytest.raises(ValidationError):
        auth_service.create_user("bob", "Secret123", role="owner")


def test_inactive_user_cannot_authenticate(db_session, staff_user):
    staff_user.is_active = False
    db_session.commit()

    assert auth_service.authenticate("staff_user", "Password123") is None


def test_verify_password_with_malformed_hash():
    assert auth_service.verify_password("Password123", "not-a-bcrypt-hash") is False


class TestSessions:

    def test_token_is_stored_hashed(self, db_session, staff_user):
        session, token = session_service.create_session(staff_user.id)

        assert len(token) == 64
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).first() is None

    def test_validate_and_revoke(self, db_session, staff_user):
        _, token = session_service.create_session(staff_user.id)

        assert session_service.validate_session(token).id == staff_user.id
        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None
        assert session_service.revoke_session(token) is False

    def test_expired_session(self, db_session, staff_user):
        session, token = session_service.create_session(staff_user.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_inactive_user_session(self, db_session, staff_user):
        _, token = session_service.create_session(staff_user.id)
        staff_user.is_active = False
        db_session.commit()

        assert session_service.validate_session(token) is None


def test_role_permissions():
    assert ROLE_PERMISSIONS["admin"] > ROLE_PERMISSIONS["manager"] > ROLE_PERMISSIONS["staff"]
    assert has_permission("staff", "sales:write")
    assert not has_permission("staff", "inventory:write")
    assert not has_permission("manager", "reports:write")
    assert not has_permission(None, "inventory:read")
