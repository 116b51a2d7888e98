from pydantic import Field, field_validator
from typing import Optional, List

from ...core.schemas import CamelModel


class GenerationSettings(CamelModel):
    size: str = "1024x1024"
    quality: str = "standard"
    style: str = "vivid"
    response_format: str = "url"

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        if v not in ("1024x1024", "1792x1024", "1024x1792"):
            raise ValueError("Размер должен быть 1024x1024, 1792x1024 или 1024x1792")
        return v

    @field_validator('quality')
    @classmethod
    def validate_quality(cls, v):
        if v not in ("standard", "hd"):
            raise ValueError("Качество должно быть standard или hd")
        return v

    @field_validator('style')
    @classmethod
    def validate_style(cls, v):
        if v not in ("vivid", "natural"):
            raise ValueError("Стиль должен быть vivid или natural")
        return v

    @field_validator('response_format')
    @classmethod
    def validate_format(cls, v):
        if v not in ("url", "b64_json"):
            raise ValueError("Формат ответа должен быть url или b64_json")
        return v


class GenerateImageRequest(CamelModel):
    prompt: str = Field(..., min_length=1, max_length=4000)
    settings: GenerationSettings = Field(default_factory=GenerationSettings)


class EditImageRequest(CamelModel):
    image_url: str = Field(..., min_length=1)
    edit_instructions: str = Field(..., min_length=1, max_length=1000)


class AnalyzeImageRequest(CamelModel):
    image_url: str = Field(..., min_length=1)
    prompt: Optional[str] = None


class VariationsRequest(CamelModel):
    image_url: str = Field(..., min_length=1)
    count: int = Field(1, ge=1, le=4)


class HistoryMessage(CamelModel):
    role: str
    content: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in ("user", "assistant"):
            raise ValueError("Роль должна быть user или assistant")
        return v


class ImageChatRequest(CamelModel):
    image_url: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    conversation_history: List[HistoryMessage] = Field(default_factory=list)
