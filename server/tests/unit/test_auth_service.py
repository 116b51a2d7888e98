"""
Тесты регистрации, входа и сессий
"""

import pytest
from datetime import timedelta

from airlab.features.auth.crud import (
    AuthService, UserExistsError, InvalidCredentialsError, AccountBlockedError
)
from airlab.features.auth.models import UserSession
from airlab.features.user.schemas import UserCreate
from airlab.utils.timezone import TimezoneUtils


def new_user(username="carol", email="carol@example.com"):
    return UserCreate(username=username, email=email, password="secret123")


class TestRegisterAndLogin:

    def test_register_returns_token(self, db_session):
        user, token = AuthService(db_session).register(new_user())

        assert user.id
        assert user.role == "user"
        assert user.plan == "free"
        assert user.password_hash != "secret123"
        assert AuthService(db_session).get_user_by_token(token).id == user.id

    def test_duplicate_email(self, db_session, test_user):
        with pytest.raises(UserExistsError):
            AuthService(db_session).register(new_user(username="other", email=test_user.email))

    def test_login(self, db_session, test_user):
        user, token = AuthService(db_session).login(test_user.email, "secret123")
        assert user.id == test_user.id
        assert token

    def test_wrong_password(self, db_session, test_user):
        with pytest.raises(InvalidCredentialsError):
            AuthService(db_session).login(test_user.email, "wrong-password")

    def test_unknown_email(self, db_session):
        with pytest.raises(InvalidCredentialsError):
            AuthService(db_session).login("nobody@example.com", "secret123")

    def test_blocked_user(self, db_session, test_user):
        test_user.is_active = False
        db_session.commit()
        with pytest.raises(AccountBlockedError):
            AuthService(db_session).login(test_user.email, "secret123")


class TestSessions:

    def test_logout_removes_session(self, db_session, test_user):
        service = AuthService(db_session)
        token = service.create_session(test_user).token

        assert service.logout(token) is True
        assert service.get_user_by_token(token) is None
        assert service.logout(token) is False

    def test_expired_session_is_deleted(self, db_session, test_user):
        service = AuthService(db_session)
        session = service.create_session(test_user)
        session.expires_at = TimezoneUtils.now_utc() - timedelta(minutes=1)
        db_session.commit()

        assert service.get_user_by_token(session.token) is None
        assert db_session.query(UserSession).count() == 0

    def test_cleanup_expired(self, db_session, test_user):
        service = AuthService(db_session)
        expired = service.create_session(test_user)
        service.create_session(test_user)
        expired.expires_at = TimezoneUtils.now_utc() - timedelta(days=1)
        db_session.commit()

        assert service.cleanup_expired_sessions() == 1
        assert db_session.query(UserSession).count() == 1

    def test_empty_token(self, db_session):
        assert AuthService(db_session).get_user_by_token("") is None
