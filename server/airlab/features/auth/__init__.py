"""
Аутентификация и сессии.

Этот модуль содержит:
- models: сессии пользователей (SQLAlchemy)
- crud: регистрация, вход, выход, поиск пользователя по токену
- dependencies: get_current_user / require_admin для маршрутов
- routes: /api/auth/*
"""

from .models import UserSession
from .crud import AuthService
from .dependencies import get_current_user, require_admin
from .routes import auth_router

__all__ = [
    "UserSession",
    "AuthService",
    "get_current_user",
    "require_admin",
    "auth_router"
]
