from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import logging

from ...core.database import get_db
from ..user.models import User
from ..user.schemas import UserResponse
from .schemas import RegisterRequest, LoginRequest, AuthResponse, LogoutResponse
from .crud import AuthService, AuthError
from .dependencies import get_current_user, extract_token

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """
    Регистрация нового пользователя. Возвращает пользователя и токен сессии.
    """
    try:
        user, token = AuthService(db).register(data.to_user_create())
        return {"user": user, "token": token}
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except IntegrityError as e:
        logger.error(f"API: Ошибка целостности при регистрации {data.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email or username already exists"
        )
    except SQLAlchemyError as e:
        logger.error(f"API: Ошибка базы данных при регистрации: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error"
        )


@auth_router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user, token = AuthService(db).login(data.email, data.password)
        return {"user": user, "token": token}
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@auth_router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    AuthService(db).logout(extract_token(request))
    logger.info(f"API: Пользователь {current_user.username} вышел")
    return LogoutResponse()


@auth_router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
