"""
Входящие вебхуки мессенджеров.

Каждый внешний чат получает свой диалог с ассистентом интеграции.
Вебхуки публичные: отвечают успехом даже при ошибке ассистента,
иначе платформа будет повторять доставку.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
import logging

from ...core.database import get_db
from ...services.openai_service import OpenAIService, OpenAIServiceError, get_openai_service
from ..assistants.crud import AssistantCRUD
from ..conversations.service import ChatService
from .channels import ChannelClient, get_channel_client
from .crud import IntegrationCRUD
from .models import Integration

logger = logging.getLogger(__name__)

webhooks_router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


def _load_integration(db: Session, integration_id: str, integration_type: str) -> Integration:
    integration = IntegrationCRUD.get_by_id(db, integration_id)
    if not integration or integration.type != integration_type or not integration.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Интеграция не найдена")
    return integration


async def read_payload(request: Request) -> Optional[Dict[str, Any]]:
    """Тело вебхука; None, если это не JSON-объект"""
    try:
        payload = await request.json()
    except ValueError:
        logger.warning(f"⚠️ Вебхук {request.url.path}: тело не JSON")
        return None
    return payload if isinstance(payload, dict) else None


async def reply_to_chat(
    db: Session,
    integration: Integration,
    chat_id: str,
    text: str,
    openai_service: OpenAIService,
) -> Optional[str]:
    """Ответ ассистента интеграции на сообщение из внешнего чата"""
    config = integration.config or {}
    assistant = AssistantCRUD.get_by_id(db, config.get("assistantId") or "")
    if not assistant:
        logger.warning(f"⚠️ У интеграции {integration.id} не найден ассистент")
        return None

    # Собственный ключ OpenAI интеграции имеет приоритет
    if config.get("openaiApiKey"):
        openai_service = OpenAIService(api_key=config["openaiApiKey"])

    chat = ChatService(db, openai_service)
    conversation = chat.get_or_create_channel_conversation(
        assistant, integration.type, chat_id, user_id=integration.user_id, integration_id=integration.id
    )
    try:
        result = await chat.send_message(conversation, text, session_id=f"{integration.type}:{chat_id}")
    except OpenAIServiceError as e:
        logger.error(f"❌ Ассистент не ответил в {integration.type}:{chat_id}: {e}")
        return None
    return result["assistant_message"]["content"]


# === TELEGRAM ===

@webhooks_router.post("/telegram/{integration_id}")
async def telegram_webhook(
    integration_id: str,
    request: Request,
    db: Session = Depends(get_db),
    openai_service: OpenAIService = Depends(get_openai_service),
    channels: ChannelClient = Depends(get_channel_client)
):
    integration = _load_integration(db, integration_id, "telegram")
    update = await read_payload(request)
    if update is None:
        return {"ok": True}

    message = update.get("message") or update.get("edited_message") or {}
    text = (message.get("text") or "").strip()
    chat_id = message.get("chat", {}).get("id")
    if not text or chat_id is None:
        return {"ok": True}

    logger.info(f"📨 Telegram {integration_id}: сообщение из чата {chat_id}")
    reply = await reply_to_chat(db, integration, str(chat_id), text, openai_service)
    if reply:
        await channels.send_telegram(integration.config["botToken"], str(chat_id), reply)
    return {"ok": True}


# === VK ===

@webhooks_router.post("/vk/{integration_id}", response_class=PlainTextResponse)
async def vk_webhook(
    integration_id: str,
    request: Request,
    db: Session = Depends(get_db),
    openai_service: OpenAIService = Depends(get_openai_service),
    channels: ChannelClient = Depends(get_channel_client)
):
    integration = _load_integration(db, integration_id, "vk")
    event = await read_payload(request)
    if event is None:
        return PlainTextResponse("ok")
    config = integration.config or {}

    if event.get("type") == "confirmation":
        return PlainTextResponse(config.get("confirmationCode") or "")

    if event.get("type") == "message_new":
        obj = event.get("object") or {}
        # Начиная с 5.103 сообщение вложено в object.message
        message = obj.get("message", obj)
        text = (message.get("text") or "").strip()
        peer_id = message.get("peer_id") or message.get("from_id")
        if text and peer_id is not None:
            logger.info(f"📨 VK {integration_id}: сообщение от {peer_id}")
            reply = await reply_to_chat(db, integration, str(peer_id), text, openai_service)
            if reply:
                await channels.send_vk(config["accessToken"], str(peer_id), reply)

    return PlainTextResponse("ok")


# === WHATSAPP ===

@webhooks_router.get("/whatsapp/{integration_id}", response_class=PlainTextResponse)
async def whatsapp_verify(
    integration_id: str,
    mode: Optional[str] = Query(None, alias="hub.mode"),
    verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    db: Session = Depends(get_db)
):
    integration = _load_integration(db, integration_id, "whatsapp")
    if mode == "subscribe" and verify_token and verify_token == integration.config.get("verifyToken"):
        logger.info(f"✅ WhatsApp вебхук {integration_id} подтверждён")
        return PlainTextResponse(challenge or "")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


@webhooks_router.post("/whatsapp/{integration_id}")
async def whatsapp_webhook(
    integration_id: str,
    request: Request,
    db: Session = Depends(get_db),
    openai_service: OpenAIService = Depends(get_openai_service),
    channels: ChannelClient = Depends(get_channel_client)
):
    integration = _load_integration(db, integration_id, "whatsapp")
    payload = await read_payload(request)
    if payload is None:
        return {"status": "ok"}
    config = integration.config or {}

    for entry in payload.get("entry", []):
        for change in entry.get("changes", []):
            for message in change.get("value", {}).get("messages", []):
                if message.get("type") != "text":
                    continue
                sender = message.get("from")
                text = (message.get("text", {}).get("body") or "").strip()
                if not sender or not text:
                    continue
                logger.info(f"📨 WhatsApp {integration_id}: сообщение от {sender}")
                reply = await reply_to_chat(db, integration, sender, text, openai_service)
                if reply:
                    await channels.send_whatsapp(config["phoneNumberId"], config["accessToken"], sender, reply)

    return {"status": "ok"}
