"""
Celery задачи обработки базы знаний.

Обработка Google Docs идёт в фоне: API сразу отвечает со статусом
processing, а клиент опрашивает список документов.
"""
import asyncio
import logging
from typing import Dict, Any

from airlab.core.celery_app import celery_app
from airlab.core.database import SessionLocal
# Модели со строковыми relationship регистрируются до первого запроса
from airlab.features.user.models import User  # noqa: F401
from airlab.features.auth.models import UserSession  # noqa: F401
from airlab.features.assistants.models import Assistant  # noqa: F401
from airlab.features.conversations.models import Conversation, ChatLog  # noqa: F401
from .models import GoogleDocsDocument, KnowledgeBaseEntry  # noqa: F401
from .pipeline import KnowledgePipeline

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    time_limit=600,
    soft_time_limit=540
)
def process_google_doc_task(self, document_id: str) -> Dict[str, Any]:
    """
    Получение, анализ и загрузка Google Doc в vector store ассистента.
    """
    db = SessionLocal()
    try:
        document = asyncio.run(KnowledgePipeline(db).process_google_doc(document_id))
        if document is None:
            return {"status": "not_found", "document_id": document_id}
        return {"status": document.status, "document_id": document_id}
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3, time_limit=600)
def process_knowledge_entry_task(self, entry_id: str) -> Dict[str, Any]:
    """Анализ и загрузка текстовой записи базы знаний"""
    db = SessionLocal()
    try:
        entry = asyncio.run(KnowledgePipeline(db).process_text_entry(entry_id))
        if entry is None:
            return {"status": "not_found", "entry_id": entry_id}
        return {"status": entry.status, "entry_id": entry_id}
    finally:
        db.close()
