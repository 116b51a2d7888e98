from sqlalchemy import Column, String, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ...core.database import Base, generate_uuid

DEFAULT_USER_SETTINGS = {
    "defaultModel": "gpt-4o",
    "autoSave": True,
    "darkMode": False,
}


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # user | admin
    is_active = Column(Boolean, nullable=False, default=True)
    plan = Column(String(20), nullable=False, default="free")  # free | basic | pro | premium
    plan_expires_at = Column(DateTime(timezone=True), nullable=True)
    api_key = Column(String(255), nullable=True)  # собственный ключ OpenAI пользователя
    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_USER_SETTINGS))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self):
        return f"<User {self.id} - {self.username}>"
