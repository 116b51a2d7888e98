"""
Управление пользователями.

Этот модуль содержит:
- models: модели базы данных (SQLAlchemy)
- schemas: схемы API (Pydantic)
- crud: операции с БД (CRUD - Create, Read, Update, Delete)
- routes: /api/users и /api/admin/users
"""

from .models import User
from .crud import UserCRUD, get_user_crud

__all__ = [
    "User",
    "UserCRUD",
    "get_user_crud",
]
