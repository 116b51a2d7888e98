from pydantic import Field
from typing import Optional

from ...core.schemas import CamelModel
from ..user.schemas import UserCreate, UserResponse


class RegisterRequest(UserCreate):
    """Самостоятельная регистрация: роль и тариф не задаются клиентом"""

    def to_user_create(self) -> UserCreate:
        return UserCreate(
            username=self.username,
            email=self.email,
            password=self.password,
            first_name=self.first_name,
            last_name=self.last_name,
        )


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class LogoutResponse(CamelModel):
    success: bool = True
    message: Optional[str] = "Logged out successfully"
