import re
from pydantic import Field, field_validator
from typing import Optional, Dict, Any

from ...core.schemas import CamelModel

POSITIONS = ("bottom-right", "bottom-left", "top-right", "top-left")
SIZES = ("small", "medium", "large")
THEMES = ("light", "dark", "auto")

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
# Шрифт выводится в <style> без экранирования, поэтому допускаем только безопасные символы
FONT_FAMILY = re.compile(r"^[\w\s,\-'\"]+$")


class WidgetConfig(CamelModel):
    primary_color: str = "#10B981"
    secondary_color: str = "#065F46"
    background_color: str = "#FFFFFF"
    text_color: str = "#111827"
    border_radius: int = Field(12, ge=0, le=50)
    font_size: int = Field(14, ge=8, le=32)
    font_family: str = "Inter, sans-serif"
    position: str = "bottom-right"
    size: str = "medium"
    show_avatar: bool = True
    show_typing: bool = True
    welcome_message: str = Field("Привет! Как дела? Чем могу помочь?", max_length=1000)
    placeholder: str = Field("Введите ваше сообщение...", max_length=200)
    button_text: str = Field("Отправить", max_length=50)
    theme: str = "light"
    avatar_url: Optional[str] = None
    api_base_url: Optional[str] = None

    @field_validator('primary_color', 'secondary_color', 'background_color', 'text_color')
    @classmethod
    def validate_color(cls, v):
        if not HEX_COLOR.match(v):
            raise ValueError(f"Цвет должен быть в формате #RRGGBB: {v}")
        return v

    @field_validator('font_family')
    @classmethod
    def validate_font(cls, v):
        if not FONT_FAMILY.match(v):
            raise ValueError("Недопустимые символы в названии шрифта")
        return v

    @field_validator('position')
    @classmethod
    def validate_position(cls, v):
        if v not in POSITIONS:
            raise ValueError(f"Позиция должна быть одной из: {', '.join(POSITIONS)}")
        return v

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        if v not in SIZES:
            raise ValueError(f"Размер должен быть одним из: {', '.join(SIZES)}")
        return v

    @field_validator('theme')
    @classmethod
    def validate_theme(cls, v):
        if v not in THEMES:
            raise ValueError(f"Тема должна быть одной из: {', '.join(THEMES)}")
        return v

    @field_validator('avatar_url', 'api_base_url')
    @classmethod
    def validate_url(cls, v):
        if not v:
            return None
        if not v.startswith(("http://", "https://", "/")):
            raise ValueError("URL должен начинаться с http://, https:// или /")
        return v


class WidgetGenerateRequest(CamelModel):
    config: WidgetConfig = Field(default_factory=WidgetConfig)


class WidgetGenerateResponse(CamelModel):
    html: str
    config: Dict[str, Any]


class WidgetChatRequest(CamelModel):
    message: Optional[str] = None
    session_id: str = Field(..., min_length=1, max_length=100)


class WidgetChatResponse(CamelModel):
    reply: str
    message_id: str
