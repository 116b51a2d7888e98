from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from typing import List
import logging

from ...core.database import get_db
from ..auth.dependencies import get_current_user, require_admin, ensure_self_or_admin
from .models import User
from .schemas import UserCreate, UserResponse, UserUpdate, AdminUserUpdate
from .crud import UserCRUD

# Настройка логирования для routes
logger = logging.getLogger(__name__)

user_router = APIRouter(prefix="/api/users", tags=["users"])
admin_user_router = APIRouter(prefix="/api/admin/users", tags=["admin"])


def _save_update(crud: UserCRUD, user_id: str, update_data) -> User:
    try:
        user = crud.update_user(user_id, update_data)
    except IntegrityError as e:
        logger.error(f"API: Конфликт при обновлении пользователя {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already taken"
        )
    except SQLAlchemyError as e:
        logger.error(f"API: Ошибка базы данных: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error"
        )
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# === ПОЛЬЗОВАТЕЛИ ===

@user_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Создать пользователя (только администратор).
    """
    crud = UserCRUD(db)
    if crud.exists(user_data.email, user_data.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email or username already exists"
        )
    try:
        user = crud.create_user(user_data)
    except SQLAlchemyError as e:
        logger.error(f"API: Ошибка базы данных: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error"
        )
    logger.info(f"API: Администратор {admin.username} создал пользователя {user.id}")
    return user


@user_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ensure_self_or_admin(current_user, user_id)
    user = UserCRUD(db).get_user(user_id)
    if not user:
        logger.warning(f"API: Пользователь не найден: {user_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@user_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Обновить свой профиль. Роль, тариф и статус меняет только администратор.
    """
    ensure_self_or_admin(current_user, user_id)
    return _save_update(UserCRUD(db), user_id, update_data)


# === АДМИНИСТРИРОВАНИЕ ===

@admin_user_router.get("", response_model=List[UserResponse])
async def list_users(
    skip: int = 0,
    limit: int = 100,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return UserCRUD(db).get_all_users(skip=skip, limit=limit)


@admin_user_router.put("/{user_id}", response_model=UserResponse)
async def admin_update_user(
    user_id: str,
    update_data: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = _save_update(UserCRUD(db), user_id, update_data)
    logger.info(f"API: Администратор {admin.username} обновил пользователя {user_id}")
    return user
