from pydantic import Field
from datetime import datetime
from typing import Optional, List, Dict, Any

from ...core.schemas import CamelModel


class ChatMessage(CamelModel):
    id: str
    role: str
    content: str
    timestamp: str


class ConversationCreate(CamelModel):
    assistant_id: str
    title: Optional[str] = Field(None, max_length=500)
    messages: List[ChatMessage] = Field(default_factory=list)


class ConversationResponse(CamelModel):
    id: str
    user_id: str
    assistant_id: str
    openai_thread_id: Optional[str] = None
    title: str
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SendMessageRequest(CamelModel):
    message: Optional[str] = None


class SendMessageResponse(CamelModel):
    user_message: ChatMessage
    assistant_message: ChatMessage


class ChatLogCreate(CamelModel):
    conversation_id: Optional[str] = None
    assistant_id: Optional[str] = None
    session_id: Optional[str] = None
    action: str = Field(..., min_length=1, max_length=50)
    message_id: Optional[str] = None
    message_content: Optional[str] = None
    message_role: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ChatLogResponse(CamelModel):
    id: str
    user_id: str
    conversation_id: Optional[str] = None
    assistant_id: Optional[str] = None
    session_id: Optional[str] = None
    action: str
    message_id: Optional[str] = None
    message_content: Optional[str] = None
    message_role: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: Optional[datetime] = None
