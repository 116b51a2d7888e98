from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, Dict, Any

from ...core.schemas import CamelModel
from ...core.security import mask_secret

INTEGRATION_TYPES = ("telegram", "vk", "whatsapp", "openai")

# Ключи конфигурации, которые не отдаются клиенту целиком
SECRET_KEYS = ("botToken", "accessToken", "openaiApiKey", "apiKey", "verifyToken")


class TelegramConfig(CamelModel):
    bot_token: str = Field(..., min_length=1)
    assistant_id: str = Field(..., min_length=1)
    openai_api_key: Optional[str] = None
    webhook_url: Optional[str] = None


class VKConfig(CamelModel):
    access_token: str = Field(..., min_length=1)
    group_id: str = Field(..., min_length=1)
    assistant_id: str = Field(..., min_length=1)
    openai_api_key: Optional[str] = None
    confirmation_code: Optional[str] = None

    @field_validator('group_id', mode='before')
    @classmethod
    def group_id_to_str(cls, v):
        return str(v) if v is not None else v


class WhatsAppConfig(CamelModel):
    phone_number_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    verify_token: str = Field(..., min_length=1)
    assistant_id: Optional[str] = None
    webhook_url: Optional[str] = None


class OpenAIIntegrationConfig(CamelModel):
    api_key: str = Field(..., min_length=1)
    assistant_id: str = Field(..., min_length=1)
    model: str = "gpt-4o"


CONFIG_SCHEMAS = {
    "telegram": TelegramConfig,
    "vk": VKConfig,
    "whatsapp": WhatsAppConfig,
    "openai": OpenAIIntegrationConfig,
}


def mask_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        key: mask_secret(str(value)) if key in SECRET_KEYS and value else value
        for key, value in (config or {}).items()
    }


class IntegrationCreate(CamelModel):
    type: str
    name: str = Field(..., min_length=1, max_length=255)
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v not in INTEGRATION_TYPES:
            raise ValueError(f"Тип интеграции должен быть одним из: {', '.join(INTEGRATION_TYPES)}")
        return v


class TelegramIntegrationCreate(CamelModel):
    name: str = Field("Telegram", min_length=1, max_length=255)
    config: TelegramConfig


class VKIntegrationCreate(CamelModel):
    name: str = Field("VK", min_length=1, max_length=255)
    config: VKConfig


class WhatsAppIntegrationCreate(CamelModel):
    name: str = Field("WhatsApp", min_length=1, max_length=255)
    config: WhatsAppConfig


class OpenAIIntegrationCreate(CamelModel):
    name: str = Field("OpenAI", min_length=1, max_length=255)
    config: OpenAIIntegrationConfig


class IntegrationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'is_active', mode='before')
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError('Поле не может быть null')
        return v


class IntegrationResponse(CamelModel):
    id: str
    user_id: str
    type: str
    name: str
    config: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('config')
    @classmethod
    def hide_secrets(cls, v):
        return mask_config(v)


def is_masked(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("*")
