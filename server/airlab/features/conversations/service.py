"""
Обмен сообщениями с ассистентом.

Используется и REST-диалогами, и входящими вебхуками каналов.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ...services.openai_service import (
    OpenAIService, EMPTY_REPLY, DEFAULT_SYSTEM_PROMPT, build_instructions
)
from ...utils.timezone import TimezoneUtils
from ..assistants.models import Assistant
from ..knowledge.crud import GoogleDocsCRUD
from .crud import ConversationCRUD, ChatLogCRUD
from .models import Conversation

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


def make_message(role: str, content: str) -> Dict[str, Any]:
    return {
        "id": f"msg_{TimezoneUtils.now_ms()}_{role}",
        "role": role,
        "content": content,
        "timestamp": TimezoneUtils.iso_now(),
    }


class ChatService:
    def __init__(self, db: Session, openai_service: OpenAIService):
        self.db = db
        self.openai = openai_service

    def get_or_create_channel_conversation(
        self,
        assistant: Assistant,
        channel: str,
        chat_id: str,
        user_id: Optional[str] = None,
        integration_id: Optional[str] = None,
    ) -> Conversation:
        """
        Один диалог на внешний чат, заголовок <канал>:<chatId>.

        Чаты разных интеграций одного ассистента не пересекаются.
        """
        title = f"{channel}:{chat_id}"
        conversation = ConversationCRUD.get_by_title(self.db, assistant.id, title, integration_id)
        if conversation:
            return conversation
        return ConversationCRUD.create(
            self.db,
            user_id=user_id or assistant.user_id,
            assistant_id=assistant.id,
            title=title,
            integration_id=integration_id,
        )

    async def _add_documents_context(self, thread_id: str, assistant: Assistant) -> int:
        documents = [
            doc for doc in GoogleDocsCRUD.get_completed_by_assistant(self.db, assistant.id)
            if doc.content
        ]
        for doc in documents:
            await self.openai.add_document_context(thread_id, doc.title, doc.content)
        return len(documents)

    async def _reply_with_thread(self, conversation: Conversation, assistant: Assistant, text: str) -> str:
        if not conversation.openai_thread_id:
            thread_id = await self.openai.create_thread()
            added = await self._add_documents_context(thread_id, assistant)
            ConversationCRUD.set_thread(self.db, conversation, thread_id)
            logger.info(f"🧵 Для диалога {conversation.id} создан тред {thread_id}, документов в контексте: {added}")
        await self.openai.send_message(conversation.openai_thread_id, text)
        return await self.openai.run_assistant(conversation.openai_thread_id, assistant.openai_assistant_id)

    async def _reply_with_completion(self, conversation: Conversation, assistant: Assistant, text: str) -> str:
        system = build_instructions(assistant.instructions, assistant.system_prompt) or DEFAULT_SYSTEM_PROMPT
        messages: List[Dict[str, str]] = [{"role": "system", "content": system}]
        for item in (conversation.messages or [])[-HISTORY_LIMIT:]:
            if item.get("role") in ("user", "assistant") and item.get("content"):
                messages.append({"role": item["role"], "content": item["content"]})
        messages.append({"role": "user", "content": text})
        return await self.openai.chat_completion(
            messages, model=assistant.model, temperature=assistant.temperature
        )

    async def generate_reply(self, conversation: Conversation, text: str) -> str:
        assistant = conversation.assistant
        if assistant.openai_assistant_id:
            reply = await self._reply_with_thread(conversation, assistant, text)
        else:
            reply = await self._reply_with_completion(conversation, assistant, text)
        return reply.strip() if reply and reply.strip() else EMPTY_REPLY

    def _log(
        self,
        conversation: Conversation,
        message: Dict[str, Any],
        action: str,
        session_id: Optional[str],
        meta: Dict[str, Any],
    ):
        try:
            ChatLogCRUD.create(
                self.db,
                user_id=conversation.user_id,
                action=action,
                conversation_id=conversation.id,
                assistant_id=conversation.assistant_id,
                session_id=session_id,
                message_id=message["id"],
                message_content=message["content"],
                message_role=message["role"],
                meta=meta,
            )
        except Exception as e:
            logger.warning(f"⚠️ Не удалось записать {action} в журнал: {e}")

    async def send_message(
        self,
        conversation: Conversation,
        text: str,
        session_id: Optional[str] = None,
        client_info: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Dict[str, Any]]:
        """
        Отправляет сообщение ассистенту и сохраняет обе реплики в диалоге.

        Ошибки OpenAI пробрасываются, ошибки журнала только логируются.
        client_info (userAgent, ipAddress) попадает в метаданные журнала.
        """
        assistant = conversation.assistant
        user_message = make_message("user", text)
        reply = await self.generate_reply(conversation, text)
        assistant_message = make_message("assistant", reply)

        ConversationCRUD.append_messages(self.db, conversation, user_message, assistant_message)

        session_id = session_id or f"session_{TimezoneUtils.now_ms()}"
        meta = {
            **(client_info or {}),
            "model": assistant.model,
            "temperature": assistant.temperature,
        }
        self._log(conversation, user_message, "message_sent", session_id, meta)
        self._log(conversation, assistant_message, "message_received", session_id, meta)

        return {"user_message": user_message, "assistant_message": assistant_message}
