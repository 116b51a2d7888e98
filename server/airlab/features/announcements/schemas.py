from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional

from ...core.schemas import CamelModel

ANNOUNCEMENT_TYPES = ("info", "warning", "success", "error")
PRIORITIES = ("low", "normal", "high")
TARGETS = ("all", "user", "admin")


def _check(value, allowed, label):
    if value is not None and value not in allowed:
        raise ValueError(f"{label} должен быть одним из: {', '.join(allowed)}")
    return value


class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    type: str = "info"
    priority: str = "normal"
    target_users: str = "all"
    is_active: bool = True
    is_pinned: bool = False
    expires_at: Optional[datetime] = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        return _check(v, ANNOUNCEMENT_TYPES, "Тип")

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v):
        return _check(v, PRIORITIES, "Приоритет")

    @field_validator('target_users')
    @classmethod
    def validate_target(cls, v):
        return _check(v, TARGETS, "Аудитория")


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    priority: Optional[str] = None
    target_users: Optional[str] = None
    is_active: Optional[bool] = None
    is_pinned: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        return _check(v, ANNOUNCEMENT_TYPES, "Тип")

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v):
        return _check(v, PRIORITIES, "Приоритет")

    @field_validator('target_users')
    @classmethod
    def validate_target(cls, v):
        return _check(v, TARGETS, "Аудитория")


class AnnouncementResponse(CamelModel):
    id: str
    title: str
    content: str
    type: str
    priority: str
    target_users: str
    is_active: bool
    is_pinned: bool
    expires_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserAnnouncementResponse(AnnouncementResponse):
    is_read: bool = False
