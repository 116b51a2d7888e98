"""
Конвейер обработки базы знаний.

Google Doc: получение текста -> AI-анализ -> загрузка в vector store
ассистента -> запись в базе знаний -> статус completed.
"""
import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from ...services.ai_analyzer import AIAnalyzer, DocumentAnalysis, build_knowledge_text
from ...services.google_docs import GoogleDocsService, extract_doc_id
from ...services.openai_service import OpenAIService
from ...utils.timezone import TimezoneUtils
from ..assistants.models import Assistant
from ..assistants.service import AssistantService
from .crud import GoogleDocsCRUD, KnowledgeBaseCRUD
from .models import GoogleDocsDocument, KnowledgeBaseEntry

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Ошибка обработки документа, текст попадает в error_message"""


def safe_filename(title: str, extension: str = "txt") -> str:
    name = re.sub(r'[\\/:*?"<>|\n\r\t]+', ' ', title).strip() or "document"
    return f"{name[:120]}.{extension}"


class KnowledgePipeline:
    def __init__(
        self,
        db: Session,
        openai_service: Optional[OpenAIService] = None,
        docs_service: Optional[GoogleDocsService] = None,
        analyzer: Optional[AIAnalyzer] = None,
    ):
        self.db = db
        self.openai = openai_service or OpenAIService()
        self.docs = docs_service or GoogleDocsService()
        self.analyzer = analyzer or AIAnalyzer(self.openai)
        self.assistants = AssistantService(db, self.openai)

    def _can_upload(self, assistant: Assistant) -> bool:
        return self.openai.is_configured and bool(assistant.openai_assistant_id)

    async def _upload(self, assistant: Assistant, title: str, analysis: DocumentAnalysis, content: str):
        """Загружает текст в vector store; без OpenAI возвращает (None, None)"""
        if not self._can_upload(assistant):
            logger.info(f"Ассистент {assistant.id} не связан с OpenAI, документ остаётся локальным")
            return None, None
        text = build_knowledge_text(title, analysis, content)
        result = await self.assistants.add_document(assistant, text.encode("utf-8"), safe_filename(title))
        return result["file_id"], result["vector_store_id"]

    async def process_google_doc(self, document_id: str) -> Optional[GoogleDocsDocument]:
        document = GoogleDocsCRUD.get_by_id(self.db, document_id)
        if not document:
            logger.warning(f"⚠️ Документ {document_id} не найден, обработка пропущена")
            return None

        logger.info(f"📄 Обработка Google Doc {document.id}: {document.url}")
        GoogleDocsCRUD.update(self.db, document, {"status": "processing", "error_message": None})

        try:
            doc_id = extract_doc_id(document.url)
            if not doc_id:
                raise PipelineError("Invalid Google Docs URL")

            content = await self.docs.get_document_content(doc_id)
            if not content:
                raise PipelineError(
                    "Не удалось получить содержимое документа. "
                    "Убедитесь, что документ открыт для просмотра по ссылке"
                )
            GoogleDocsCRUD.update(self.db, document, {"content": content})

            analysis = await self.analyzer.analyze_document(content, document.title)
            file_id, store_id = await self._upload(document.assistant, document.title, analysis, content)

            entry_data = {
                "title": document.title,
                "openai_file_id": file_id,
                "vector_store_id": store_id,
                "summary": analysis.summary,
                "key_points": analysis.key_points,
                "topics": analysis.topics,
                "meta": {**analysis.metadata, "url": document.url},
                "status": "completed",
            }
            entry = KnowledgeBaseCRUD.get_by_source(self.db, "google_doc", document.id)
            if entry:
                KnowledgeBaseCRUD.update(self.db, entry, entry_data)
            else:
                KnowledgeBaseCRUD.create(
                    self.db,
                    user_id=document.user_id,
                    assistant_id=document.assistant_id,
                    source_type="google_doc",
                    source_id=document.id,
                    **entry_data,
                )

            GoogleDocsCRUD.update(self.db, document, {
                "status": "completed",
                "openai_file_id": file_id,
                "processed_at": TimezoneUtils.now_utc(),
                "error_message": None,
            })
            logger.info(f"✅ Google Doc {document.id} обработан ({analysis.word_count} слов)")
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Ошибка обработки Google Doc {document_id}: {e}", exc_info=True)
            GoogleDocsCRUD.update(self.db, document, {
                "status": "error",
                "error_message": str(e) or e.__class__.__name__,
            })

        return document

    async def process_text_entry(self, entry_id: str) -> Optional[KnowledgeBaseEntry]:
        """Анализ и загрузка записи базы знаний, добавленной текстом"""
        entry = KnowledgeBaseCRUD.get_by_id(self.db, entry_id)
        if not entry:
            logger.warning(f"⚠️ Запись базы знаний {entry_id} не найдена")
            return None

        try:
            analysis = await self.analyzer.analyze_document(entry.content or "", entry.title)
            file_id, store_id = await self._upload(entry.assistant, entry.title, analysis, entry.content or "")
            KnowledgeBaseCRUD.update(self.db, entry, {
                "summary": analysis.summary,
                "key_points": analysis.key_points,
                "topics": analysis.topics,
                "meta": analysis.metadata,
                "openai_file_id": file_id,
                "vector_store_id": store_id,
                "status": "completed",
            })
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Ошибка обработки записи базы знаний {entry_id}: {e}", exc_info=True)
            KnowledgeBaseCRUD.update(self.db, entry, {
                "status": "error",
                "meta": {**(entry.meta or {}), "error": str(e)},
            })
        return entry
