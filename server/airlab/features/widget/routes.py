from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response
from sqlalchemy.orm import Session
import logging

from ...core.config import settings
from ...core.database import get_db
from ...services.openai_service import OpenAIService, OpenAIServiceError, get_openai_service
from ...utils.headers import attachment_header
from ..assistants.crud import AssistantCRUD
from ..assistants.dependencies import get_owned_assistant
from ..assistants.models import Assistant
from ..conversations.routes import client_info
from ..conversations.service import ChatService
from .generator import render_widget
from .schemas import (
    WidgetConfig, WidgetGenerateRequest, WidgetGenerateResponse, WidgetChatRequest, WidgetChatResponse
)

logger = logging.getLogger(__name__)

widget_router = APIRouter(prefix="/api", tags=["widget"])


def _default_config() -> WidgetConfig:
    return WidgetConfig(api_base_url=settings.PUBLIC_BASE_URL or None)


@widget_router.get("/assistants/{assistant_id}/widget")
async def get_widget_config(assistant: Assistant = Depends(get_owned_assistant)):
    """Конфигурация виджета по умолчанию"""
    return _default_config().model_dump(by_alias=True)


@widget_router.post("/assistants/{assistant_id}/widget", response_model=WidgetGenerateResponse)
async def generate_widget(
    data: WidgetGenerateRequest,
    download: bool = Query(False),
    assistant: Assistant = Depends(get_owned_assistant),
    db: Session = Depends(get_db)
):
    """Генерирует HTML виджета и открывает публичный чат ассистента"""
    config = data.config
    if not config.api_base_url and settings.PUBLIC_BASE_URL:
        config = config.model_copy(update={"api_base_url": settings.PUBLIC_BASE_URL})

    html = render_widget(config, assistant.id, assistant.name)
    if not assistant.widget_enabled:
        AssistantCRUD.update(db, assistant, {"widget_enabled": True})
    logger.info(f"🧩 Сгенерирован виджет для ассистента {assistant.id}")

    if download:
        return Response(
            content=html,
            media_type="text/html; charset=utf-8",
            headers={"Content-Disposition": attachment_header(f"chat-widget-{assistant.name or 'assistant'}.html")}
        )
    return {"html": html, "config": config.model_dump(by_alias=True)}


@widget_router.delete("/assistants/{assistant_id}/widget")
async def disable_widget(
    assistant: Assistant = Depends(get_owned_assistant),
    db: Session = Depends(get_db)
):
    """Закрывает публичный чат; уже встроенные виджеты перестают отвечать"""
    AssistantCRUD.update(db, assistant, {"widget_enabled": False})
    logger.info(f"🔒 Виджет ассистента {assistant.id} отключён")
    return {"success": True}


@widget_router.post("/widget/{assistant_id}/chat", response_model=WidgetChatResponse)
async def widget_chat(
    assistant_id: str,
    data: WidgetChatRequest,
    request: Request,
    db: Session = Depends(get_db),
    openai_service: OpenAIService = Depends(get_openai_service)
):
    """Публичный endpoint встроенного виджета"""
    assistant = AssistantCRUD.get_by_id(db, assistant_id)
    if not assistant or not assistant.is_active or not assistant.widget_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assistant not found")

    text = (data.message or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")

    chat = ChatService(db, openai_service)
    conversation = chat.get_or_create_channel_conversation(assistant, "widget", data.session_id)
    try:
        result = await chat.send_message(
            conversation, text, session_id=f"widget:{data.session_id}", client_info=client_info(request)
        )
    except OpenAIServiceError as e:
        logger.error(f"❌ Виджет ассистента {assistant_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Assistant is unavailable")

    reply = result["assistant_message"]
    return {"reply": reply["content"], "message_id": reply["id"]}
