from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List, Dict, Any

from ...core.schemas import CamelModel


class GoogleDocImportRequest(CamelModel):
    document_url: Optional[str] = None

    @field_validator('document_url')
    @classmethod
    def strip_url(cls, v):
        return v.strip() if v else v


class GoogleDocImportResponse(CamelModel):
    success: bool = True
    document_id: str
    title: str
    message: str


class GoogleDocResponse(CamelModel):
    id: str
    user_id: str
    assistant_id: str
    title: str
    url: str
    status: str
    error_message: Optional[str] = None
    openai_file_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    content_length: Optional[int] = None


class KnowledgeEntryCreate(CamelModel):
    assistant_id: str
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)


class KnowledgeEntryResponse(CamelModel):
    id: str
    user_id: str
    assistant_id: str
    title: str
    source_type: str
    source_id: Optional[str] = None
    openai_file_id: Optional[str] = None
    vector_store_id: Optional[str] = None
    summary: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VectorStoreFilesResponse(CamelModel):
    vector_store_id: Optional[str] = None
    files: List[Dict[str, Any]] = Field(default_factory=list)
