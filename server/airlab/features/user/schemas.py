from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, Dict, Any

from ...core.schemas import CamelModel

PLANS = ("free", "basic", "pro", "premium")
ROLES = ("user", "admin")


def _clean_username(v):
    if v is None:
        return v
    v = v.strip()
    if v.startswith('@'):
        v = v[1:]
    if not v or not v.replace('_', '').replace('-', '').replace('.', '').isalnum():
        raise ValueError(
            'Username может содержать только буквы, цифры, '
            'точки, подчеркивания и дефисы'
        )
    return v


class UserCreate(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    role: str = "user"
    plan: str = "free"

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        return _clean_username(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        v = v.strip().lower()
        if '@' not in v or v.startswith('@') or v.endswith('@'):
            raise ValueError('Некорректный email')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in ROLES:
            raise ValueError(f"role должен быть одним из: {', '.join(ROLES)}")
        return v

    @field_validator('plan')
    @classmethod
    def validate_plan(cls, v):
        if v not in PLANS:
            raise ValueError(f"plan должен быть одним из: {', '.join(PLANS)}")
        return v


class UserResponse(CamelModel):
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_active: bool
    plan: str
    plan_expires_at: Optional[datetime] = None
    settings: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(CamelModel):
    """Поля, которые пользователь может менять сам"""
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    settings: Optional[Dict[str, Any]] = None

    @field_validator('username', 'email', mode='before')
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError('Поле не может быть null')
        return v

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        return _clean_username(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if '@' not in v:
            raise ValueError('Некорректный email')
        return v


class AdminUserUpdate(UserUpdate):
    """Поля, доступные администратору. Пароль здесь не меняется."""
    role: Optional[str] = None
    is_active: Optional[bool] = None
    plan: Optional[str] = None
    plan_expires_at: Optional[datetime] = None

    @field_validator('role', 'is_active', 'plan', mode='before')
    @classmethod
    def reject_null_admin_fields(cls, v):
        if v is None:
            raise ValueError('Поле не может быть null')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v is not None and v not in ROLES:
            raise ValueError(f"role должен быть одним из: {', '.join(ROLES)}")
        return v

    @field_validator('plan')
    @classmethod
    def validate_plan(cls, v):
        if v is not None and v not in PLANS:
            raise ValueError(f"plan должен быть одним из: {', '.join(PLANS)}")
        return v
