from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List, Dict, Any

from ...core.schemas import CamelModel

TOOL_TYPES = ("code_interpreter", "file_search", "function")


class AssistantTool(CamelModel):
    type: str
    enabled: bool = True

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v not in TOOL_TYPES:
            raise ValueError(f"Неизвестный инструмент: {v}")
        return v


class AssistantFile(CamelModel):
    id: str
    name: str
    path: Optional[str] = None


class AssistantBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=256)
    description: Optional[str] = None
    instructions: Optional[str] = None
    system_prompt: Optional[str] = None
    model: str = Field("gpt-4o", min_length=1, max_length=50)
    temperature: float = Field(0.7, ge=0, le=2)
    # None: инструменты по умолчанию (DEFAULT_TOOLS)
    tools: Optional[List[AssistantTool]] = None
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Название ассистента не может быть пустым')
        return v.strip()


class AssistantCreate(AssistantBase):
    files: List[AssistantFile] = Field(default_factory=list)


class AssistantUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=256)
    description: Optional[str] = None
    instructions: Optional[str] = None
    system_prompt: Optional[str] = None
    model: Optional[str] = Field(None, min_length=1, max_length=50)
    temperature: Optional[float] = Field(None, ge=0, le=2)
    tools: Optional[List[AssistantTool]] = None
    files: Optional[List[AssistantFile]] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'model', 'temperature', 'tools', 'files', 'is_active', mode='before')
    @classmethod
    def reject_null(cls, v):
        # Поле можно не передавать, но нельзя обнулить
        if v is None:
            raise ValueError('Поле не может быть null')
        return v

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Название ассистента не может быть пустым')
        return v.strip()


class AssistantResponse(CamelModel):
    id: str
    user_id: str
    openai_assistant_id: Optional[str] = None
    vector_store_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    system_prompt: Optional[str] = None
    model: str
    temperature: float
    tools: List[Dict[str, Any]] = Field(default_factory=list)
    files: List[Dict[str, Any]] = Field(default_factory=list)
    is_active: bool
    widget_enabled: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssistantDetailResponse(AssistantResponse):
    openai_file_ids: Optional[List[str]] = None
    openai_file_count: Optional[int] = None


class AssistantExport(CamelModel):
    """Конфигурация ассистента для экспорта/импорта"""
    name: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    system_prompt: Optional[str] = None
    model: str = "gpt-4o"
    temperature: float = 0.7
    tools: List[AssistantTool] = Field(default_factory=list)
    files: List[AssistantFile] = Field(default_factory=list)
    exported_at: Optional[str] = None
    version: str = "1.0"


class AssistantFileUpload(CamelModel):
    file_url: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1, max_length=255)


class SyncFilesResponse(CamelModel):
    success: bool
    files_count: int
    file_ids: List[str]
    message: str
