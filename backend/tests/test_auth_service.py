"""
Authentication service tests.

Verifies registration rules, login, token claims, profile updates,
password changes and deletion guards.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from inventory_api.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from inventory_api.models import User
from inventory_api.services import auth_service
from inventory_api.services.token_service import decode_token, issue_token


class TestAliceScenario:
    """register alice -> duplicate register fails -> login -> claims are not admin."""

    def test_register_duplicate_login(self, db_session):
        alice = auth_service.register_user(
            username="alice", password="Password123", email="alice@example.com", role="user"
        )
        assert alice.role == "user"
        assert alice.password_hash != "Password123"

        with pytest.raises(ConflictError) as exc:
            auth_service.register_user(
                username="alice", password="Password123", email="other@example.com", role="user"
            )
        assert exc.value.code == "REGISTRATION_FAILED"

        token, user = auth_service.login("alice", "Password123")
        assert user.id == alice.id

        claims = decode_token(token)
        assert claims.user_id == alice.id
        assert claims.username == "alice"
        assert not auth_service.is_admin(claims)
        assert auth_service.is_owner_or_admin(claims, alice.id)

    def test_login_records_last_login(self, db_session, regular_user):
        assert regular_user.last_login_at is None
        auth_service.login("alice", "Password123")
        db_session.expire_all()
        assert db_session.get(User, regular_user.id).last_login_at is not None


class TestRegistrationRules:

    def test_invalid_role(self, db_session):
        with pytest.raises(ValidationError) as exc:
            auth_service.register_user(username="carol", password="Password123", email="c@example.com", role="root")
        assert exc.value.code == "INVALID_ROLE"

    def test_weak_password(self, db_session):
        with pytest.raises(ValidationError) as exc:
            auth_service.register_user(username="carol", password="short", email="c@example.com")
        assert exc.value.code == "WEAK_PASSWORD"

    def test_overlong_password(self, db_session):
        with pytest.raises(ValidationError) as exc:
            auth_service.register_user(username="carol", password="x" * 73, email="c@example.com")
        assert exc.value.code == "WEAK_PASSWORD"

    def test_duplicate_email(self, db_session, regular_user):
        with pytest.raises(ConflictError) as exc:
            auth_service.register_user(username="carol", password="Password123", email="alice@example.com")
        assert exc.value.code == "REGISTRATION_FAILED"


class TestLogin:

    @pytest.mark.parametrize("username,password", [
        ("alice", "WrongPassword"),
        ("nobody", "Password123"),
    ])
    def test_uniform_failure(self, db_session, regular_user, username, password):
        with pytest.raises(UnauthorizedError) as exc:
            auth_service.login(username, password)
        assert exc.value.code == "INVALID_CREDENTIALS"
        assert exc.value.message == "Invalid username or password"


class TestTokens:

    def test_admin_claims(self, db_session, admin_user):
        claims = decode_token(issue_token(admin_user))
        assert claims.role == "admin"
        assert auth_service.is_admin(claims)
        assert auth_service.is_owner_or_admin(claims, admin_user.id + 100)

    def test_expired_token(self, app, db_session, regular_user):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": str(regular_user.id), "username": "alice", "role": "user",
             "iat": past, "exp": past + timedelta(hours=1)},
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError) as exc:
            decode_token(token)
        assert exc.value.code == "TOKEN_EXPIRED"

    def test_bad_signature(self, db_session, regular_user):
        token = jwt.encode(
            {"sub": str(regular_user.id), "username": "alice", "role": "user",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret-that-is-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError) as exc:
            decode_token(token)
        assert exc.value.code == "INVALID_TOKEN"

    def test_garbage_token(self, db_session):
        with pytest.raises(UnauthorizedError):
            decode_token("not-a-jwt")

    def test_none_claims_are_never_privileged(self):
        assert not auth_service.is_admin(None)
        assert not auth_service.is_owner_or_admin(None, 1)


class TestProfile:

    def test_update_email_and_phone(self, db_session, regular_user):
        user = auth_service.update_profile(regular_user.id, email="new@example.com", phone="555-000-1111")
        assert user.email == "new@example.com"
        assert user.phone == "555-000-1111"
        assert user.role == "user"

    def test_empty_phone_clears_it(self, db_session, regular_user):
        user = auth_service.update_profile(regular_user.id, phone="")
        assert user.phone is None
        assert user.email == "alice@example.com"

    def test_email_in_use(self, db_session, regular_user, other_user):
        with pytest.raises(ConflictError) as exc:
            auth_service.update_profile(regular_user.id, email="bob@example.com")
        assert exc.value.code == "EMAIL_IN_USE"

    def test_invalid_role(self, db_session, regular_user):
        with pytest.raises(ValidationError) as exc:
            auth_service.update_profile(regular_user.id, role="superuser")
        assert exc.value.code == "INVALID_ROLE"

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            auth_service.update_profile(777, phone="555-000-1111")


class TestChangePassword:

    def test_success(self, db_session, regular_user):
        auth_service.change_password(regular_user.id, "Password123", "NewPassword456")
        token, _ = auth_service.login("alice", "NewPassword456")
        assert token

    @pytest.mark.parametrize("old,new,code", [
        ("WrongPassword", "NewPassword456", "INCORRECT_PASSWORD"),
        ("Password123", "short", "WEAK_PASSWORD"),
        ("Password123", "Password123", "SAME_PASSWORD"),
    ])
    def test_rejections(self, db_session, regular_user, old, new, code):
        with pytest.raises(ValidationError) as exc:
            auth_service.change_password(regular_user.id, old, new)
        assert exc.value.code == code


class TestDeleteUser:

    def test_admin_deletes_user(self, db_session, admin_user, regular_user):
        auth_service.delete_user(regular_user.id, actor_user_id=admin_user.id)
        with pytest.raises(NotFoundError):
            auth_service.get_user(regular_user.id)

    def test_self_deletion_rejected(self, db_session, admin_user):
        with pytest.raises(ValidationError) as exc:
            auth_service.delete_user(admin_user.id, actor_user_id=admin_user.id)
        assert exc.value.code == "SELF_DELETION"
