"""
CRUD операции для диалогов и журнала сообщений
"""
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from .models import Conversation, ChatLog

logger = logging.getLogger(__name__)


class ConversationCRUD:
    """CRUD для диалогов"""

    @staticmethod
    def get_by_id(db: Session, conversation_id: str) -> Optional[Conversation]:
        return db.query(Conversation).filter(Conversation.id == conversation_id).first()

    @staticmethod
    def get_by_user(db: Session, user_id: str) -> List[Conversation]:
        return (
            db.query(Conversation)
            .filter(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc())
            .all()
        )

    @staticmethod
    def get_by_assistant(db: Session, assistant_id: str) -> List[Conversation]:
        return (
            db.query(Conversation)
            .filter(Conversation.assistant_id == assistant_id)
            .order_by(Conversation.updated_at.desc())
            .all()
        )

    @staticmethod
    def get_by_title(
        db: Session, assistant_id: str, title: str, integration_id: Optional[str] = None
    ) -> Optional[Conversation]:
        query = db.query(Conversation).filter(
            Conversation.assistant_id == assistant_id,
            Conversation.title == title
        )
        if integration_id:
            query = query.filter(Conversation.integration_id == integration_id)
        else:
            query = query.filter(Conversation.integration_id.is_(None))
        return query.first()

    @staticmethod
    def create(
        db: Session,
        user_id: str,
        assistant_id: str,
        title: Optional[str] = None,
        messages: Optional[List[Dict[str, Any]]] = None,
        integration_id: Optional[str] = None,
    ) -> Conversation:
        conversation = Conversation(
            user_id=user_id,
            assistant_id=assistant_id,
            title=title or "New conversation",
            messages=messages or [],
            integration_id=integration_id,
        )
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        logger.info(f"Создан диалог {conversation.id} с ассистентом {assistant_id}")
        return conversation

    @staticmethod
    def set_thread(db: Session, conversation: Conversation, thread_id: str) -> Conversation:
        conversation.openai_thread_id = thread_id
        db.commit()
        db.refresh(conversation)
        return conversation

    @staticmethod
    def append_messages(db: Session, conversation: Conversation, *messages: Dict[str, Any]) -> Conversation:
        # JSON-колонку переприсваиваем целиком
        conversation.messages = [*(conversation.messages or []), *messages]
        db.commit()
        db.refresh(conversation)
        return conversation

    @staticmethod
    def delete(db: Session, conversation: Conversation) -> bool:
        db.delete(conversation)
        db.commit()
        return True


class ChatLogCRUD:
    """CRUD для журнала сообщений"""

    @staticmethod
    def create(
        db: Session,
        user_id: str,
        action: str,
        conversation_id: Optional[str] = None,
        assistant_id: Optional[str] = None,
        session_id: Optional[str] = None,
        message_id: Optional[str] = None,
        message_content: Optional[str] = None,
        message_role: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> ChatLog:
        try:
            log = ChatLog(
                user_id=user_id,
                action=action,
                conversation_id=conversation_id,
                assistant_id=assistant_id,
                session_id=session_id,
                message_id=message_id,
                message_content=message_content,
                message_role=message_role,
                meta=meta or {},
            )
            db.add(log)
            db.commit()
            db.refresh(log)
            return log
        except Exception as e:
            db.rollback()
            logger.error(f"Ошибка записи в журнал сообщений: {e}")
            raise

    @staticmethod
    def get_by_user(db: Session, user_id: str, limit: int = 500) -> List[ChatLog]:
        return (
            db.query(ChatLog)
            .filter(ChatLog.user_id == user_id)
            .order_by(ChatLog.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_by_conversation(db: Session, conversation_id: str) -> List[ChatLog]:
        return (
            db.query(ChatLog)
            .filter(ChatLog.conversation_id == conversation_id)
            .order_by(ChatLog.created_at.asc())
            .all()
        )
