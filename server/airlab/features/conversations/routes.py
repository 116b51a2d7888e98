from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ...core.database import get_db
from ...services.openai_service import OpenAIService, OpenAIServiceError, OpenAINotConfiguredError, get_openai_service
from ..assistants.dependencies import get_owned_assistant, get_owned_assistant_or_404
from ..assistants.models import Assistant
from ..auth.dependencies import get_current_user, ensure_self_or_admin
from ..user.models import User
from .crud import ConversationCRUD, ChatLogCRUD
from .models import Conversation
from .schemas import (
    ConversationCreate, ConversationResponse, SendMessageRequest, SendMessageResponse,
    ChatLogCreate, ChatLogResponse
)
from .service import ChatService

logger = logging.getLogger(__name__)

conversations_router = APIRouter(prefix="/api/conversations", tags=["conversations"])
chat_logs_router = APIRouter(prefix="/api/chat-logs", tags=["chat-logs"])


def get_owned_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Conversation:
    conversation = ConversationCRUD.get_by_id(db, conversation_id)
    if not conversation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    ensure_self_or_admin(current_user, conversation.user_id)
    return conversation


def client_info(request: Request) -> dict:
    return {
        "userAgent": request.headers.get("user-agent", ""),
        "ipAddress": request.client.host if request.client else "",
    }


@conversations_router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    assistant = get_owned_assistant_or_404(db, data.assistant_id, current_user)
    return ConversationCRUD.create(
        db,
        user_id=current_user.id,
        assistant_id=assistant.id,
        title=data.title,
        messages=[m.model_dump() for m in data.messages],
    )


@conversations_router.get("/user/{user_id}", response_model=List[ConversationResponse])
async def get_user_conversations(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ensure_self_or_admin(current_user, user_id)
    return ConversationCRUD.get_by_user(db, user_id)


@conversations_router.get("/assistant/{assistant_id}", response_model=List[ConversationResponse])
async def get_assistant_conversations(
    assistant: Assistant = Depends(get_owned_assistant),
    db: Session = Depends(get_db)
):
    return ConversationCRUD.get_by_assistant(db, assistant.id)


@conversations_router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(conversation: Conversation = Depends(get_owned_conversation)):
    return conversation


@conversations_router.delete("/{conversation_id}")
async def delete_conversation(
    conversation: Conversation = Depends(get_owned_conversation),
    db: Session = Depends(get_db)
):
    ConversationCRUD.delete(db, conversation)
    return {"success": True}


@conversations_router.post("/{conversation_id}/messages", response_model=SendMessageResponse)
async def send_message(
    data: SendMessageRequest,
    request: Request,
    conversation: Conversation = Depends(get_owned_conversation),
    openai_service: OpenAIService = Depends(get_openai_service),
    db: Session = Depends(get_db)
):
    """Сообщение ассистенту; ответ сохраняется в истории диалога"""
    text = (data.message or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")

    try:
        return await ChatService(db, openai_service).send_message(
            conversation, text, client_info=client_info(request)
        )
    except OpenAINotConfiguredError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except OpenAIServiceError as e:
        logger.error(f"❌ Ошибка ответа ассистента в диалоге {conversation.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to get response: {e}")


# === ЖУРНАЛ СООБЩЕНИЙ ===

@chat_logs_router.get("/user/{user_id}", response_model=List[ChatLogResponse])
async def get_user_chat_logs(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ensure_self_or_admin(current_user, user_id)
    return ChatLogCRUD.get_by_user(db, user_id)


@chat_logs_router.get("/conversation/{conversation_id}", response_model=List[ChatLogResponse])
async def get_conversation_chat_logs(
    conversation: Conversation = Depends(get_owned_conversation),
    db: Session = Depends(get_db)
):
    return ChatLogCRUD.get_by_conversation(db, conversation.id)


@chat_logs_router.post("", response_model=ChatLogResponse, status_code=status.HTTP_201_CREATED)
async def create_chat_log(
    data: ChatLogCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if data.conversation_id:
        conversation = ConversationCRUD.get_by_id(db, data.conversation_id)
        if not conversation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
        ensure_self_or_admin(current_user, conversation.user_id)

    payload = data.model_dump(exclude={"metadata"})
    return ChatLogCRUD.create(db, user_id=current_user.id, meta=data.metadata, **payload)
