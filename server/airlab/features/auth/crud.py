"""
Регистрация, вход и сессии пользователей
"""
from sqlalchemy.orm import Session
from typing import Optional, Tuple
import logging

from .models import UserSession
from ..user.crud import UserCRUD
from ..user.models import User
from ..user.schemas import UserCreate
from ...core.config import settings
from ...core.security import verify_password, generate_session_token
from ...utils.timezone import TimezoneUtils

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Базовая ошибка аутентификации"""
    status_code = 401


class UserExistsError(AuthError):
    status_code = 400

    def __init__(self):
        super().__init__("User with this email or username already exists")


class InvalidCredentialsError(AuthError):
    status_code = 401

    def __init__(self):
        super().__init__("Invalid email or password")


class AccountBlockedError(AuthError):
    status_code = 403

    def __init__(self):
        super().__init__("Аккаунт заблокирован")


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserCRUD(db)

    def create_session(self, user: User) -> UserSession:
        session = UserSession(
            user_id=user.id,
            token=generate_session_token(),
            expires_at=TimezoneUtils.days_from_now(settings.SESSION_TTL_DAYS),
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def register(self, user_data: UserCreate) -> Tuple[User, str]:
        """Регистрирует пользователя и сразу открывает сессию"""
        if self.users.exists(user_data.email, user_data.username):
            raise UserExistsError()

        user = self.users.create_user(user_data)
        session = self.create_session(user)
        logger.info(f"✅ Зарегистрирован пользователь {user.username}")
        return user, session.token

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.users.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"❌ Неудачная попытка входа: {email}")
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.warning(f"❌ Вход в заблокированный аккаунт: {email}")
            raise AccountBlockedError()

        session = self.create_session(user)
        logger.info(f"✅ Вход пользователя {user.username}")
        return user, session.token

    def logout(self, token: str) -> bool:
        deleted = self.db.query(UserSession).filter(UserSession.token == token).delete()
        self.db.commit()
        return deleted > 0

    def get_user_by_token(self, token: str) -> Optional[User]:
        """
        Пользователь по токену сессии.
        Просроченная сессия удаляется, заблокированный пользователь не возвращается.
        """
        if not token:
            return None
        session = self.db.query(UserSession).filter(UserSession.token == token).first()
        if not session:
            return None
        if TimezoneUtils.is_past(session.expires_at):
            user_id = session.user_id
            self.db.delete(session)
            self.db.commit()
            logger.info(f"Сессия пользователя {user_id} истекла")
            return None

        user = session.user
        if not user or not user.is_active:
            return None
        return user

    def cleanup_expired_sessions(self) -> int:
        deleted = self.db.query(UserSession).filter(
            UserSession.expires_at <= TimezoneUtils.now_utc()
        ).delete()
        self.db.commit()
        return deleted
