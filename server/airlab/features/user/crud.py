from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
from .models import User
from .schemas import UserCreate, UserUpdate
from ...core.security import hash_password
from ...core.config import settings
import logging

logger = logging.getLogger(__name__)


class UserCRUD:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[User]:
        """Получить пользователя по id"""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def exists(self, email: str, username: str) -> bool:
        """Занят ли email или username"""
        return self.db.query(User).filter(
            or_(User.email == email.strip().lower(), User.username == username)
        ).first() is not None

    def create_user(self, user_data: UserCreate) -> User:
        """Создать нового пользователя"""
        try:
            user = User(
                username=user_data.username,
                email=user_data.email,
                password_hash=hash_password(user_data.password),
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                role=user_data.role,
                plan=user_data.plan,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"Создан пользователь: {user.username} ({user.id})")
            return user
        except Exception as e:
            self.db.rollback()
            logger.error(f"Ошибка создания пользователя: {e}")
            raise

    def update_user(self, user_id: str, update_data: UserUpdate) -> Optional[User]:
        """Обновить данные пользователя (только переданные поля)"""
        user = self.get_user(user_id)
        if not user:
            return None

        update_dict = update_data.model_dump(exclude_unset=True)
        if "settings" in update_dict and update_dict["settings"] is not None:
            update_dict["settings"] = {**(user.settings or {}), **update_dict["settings"]}
        for field, value in update_dict.items():
            setattr(user, field, value)

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        logger.info(f"Обновлен пользователь: {user_id}")
        return user

    def get_all_users(self, skip: int = 0, limit: int = 100) -> List[User]:
        """Получить всех пользователей"""
        return (
            self.db.query(User)
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_users_count(self) -> int:
        return self.db.query(User).count()

    def init_admin(self) -> Optional[User]:
        """Создаёт администратора, если его ещё нет"""
        existing = self.get_user_by_email(settings.ADMIN_EMAIL)
        if existing:
            return None
        admin = self.create_user(UserCreate(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            first_name="Admin",
            role="admin",
            plan="premium",
        ))
        logger.info(f"✅ Создан администратор по умолчанию: {admin.email}")
        return admin


def get_user_crud(db: Session) -> UserCRUD:
    return UserCRUD(db)
