"""
CRUD операции для Google Docs документов и базы знаний
"""
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from .models import GoogleDocsDocument, KnowledgeBaseEntry

logger = logging.getLogger(__name__)


class GoogleDocsCRUD:
    """CRUD для Google Docs документов"""

    @staticmethod
    def get_by_id(db: Session, document_id: str) -> Optional[GoogleDocsDocument]:
        return db.query(GoogleDocsDocument).filter(GoogleDocsDocument.id == document_id).first()

    @staticmethod
    def get_by_assistant(db: Session, assistant_id: str) -> List[GoogleDocsDocument]:
        return (
            db.query(GoogleDocsDocument)
            .filter(GoogleDocsDocument.assistant_id == assistant_id)
            .order_by(GoogleDocsDocument.created_at.desc())
            .all()
        )

    @staticmethod
    def get_completed_by_assistant(db: Session, assistant_id: str) -> List[GoogleDocsDocument]:
        return db.query(GoogleDocsDocument).filter(
            GoogleDocsDocument.assistant_id == assistant_id,
            GoogleDocsDocument.status == "completed"
        ).all()

    @staticmethod
    def get_by_user(db: Session, user_id: str) -> List[GoogleDocsDocument]:
        return (
            db.query(GoogleDocsDocument)
            .filter(GoogleDocsDocument.user_id == user_id)
            .order_by(GoogleDocsDocument.created_at.desc())
            .all()
        )

    @staticmethod
    def create(
        db: Session,
        user_id: str,
        assistant_id: str,
        title: str,
        url: str,
    ) -> GoogleDocsDocument:
        document = GoogleDocsDocument(
            user_id=user_id,
            assistant_id=assistant_id,
            title=title,
            url=url,
            status="processing",
        )
        db.add(document)
        db.commit()
        db.refresh(document)
        logger.info(f"Создан Google Docs документ {document.id} для ассистента {assistant_id}")
        return document

    @staticmethod
    def update(db: Session, document: GoogleDocsDocument, data: Dict[str, Any]) -> GoogleDocsDocument:
        try:
            for key, value in data.items():
                setattr(document, key, value)
            db.commit()
            db.refresh(document)
            return document
        except Exception as e:
            db.rollback()
            logger.error(f"Ошибка обновления документа {document.id}: {e}")
            raise

    @staticmethod
    def delete(db: Session, document: GoogleDocsDocument) -> bool:
        db.delete(document)
        db.commit()
        return True

    @staticmethod
    def detach_openai_file(db: Session, assistant_id: str, file_id: str) -> int:
        """Сбрасывает ссылку на файл OpenAI, commit делает вызывающий"""
        return db.query(GoogleDocsDocument).filter(
            GoogleDocsDocument.assistant_id == assistant_id,
            GoogleDocsDocument.openai_file_id == file_id
        ).update({"openai_file_id": None}, synchronize_session="fetch")


class KnowledgeBaseCRUD:
    """CRUD для записей базы знаний"""

    @staticmethod
    def get_by_id(db: Session, entry_id: str) -> Optional[KnowledgeBaseEntry]:
        return db.query(KnowledgeBaseEntry).filter(KnowledgeBaseEntry.id == entry_id).first()

    @staticmethod
    def get_by_assistant(db: Session, assistant_id: str) -> List[KnowledgeBaseEntry]:
        return (
            db.query(KnowledgeBaseEntry)
            .filter(KnowledgeBaseEntry.assistant_id == assistant_id)
            .order_by(KnowledgeBaseEntry.created_at.desc())
            .all()
        )

    @staticmethod
    def get_by_source(db: Session, source_type: str, source_id: str) -> Optional[KnowledgeBaseEntry]:
        return db.query(KnowledgeBaseEntry).filter(
            KnowledgeBaseEntry.source_type == source_type,
            KnowledgeBaseEntry.source_id == source_id
        ).first()

    @staticmethod
    def create(
        db: Session,
        user_id: str,
        assistant_id: str,
        title: str,
        source_type: str,
        source_id: Optional[str] = None,
        openai_file_id: Optional[str] = None,
        vector_store_id: Optional[str] = None,
        content: Optional[str] = None,
        summary: Optional[str] = None,
        key_points: Optional[List[str]] = None,
        topics: Optional[List[str]] = None,
        meta: Optional[Dict[str, Any]] = None,
        status: str = "completed",
    ) -> KnowledgeBaseEntry:
        entry = KnowledgeBaseEntry(
            user_id=user_id,
            assistant_id=assistant_id,
            title=title,
            source_type=source_type,
            source_id=source_id,
            openai_file_id=openai_file_id,
            vector_store_id=vector_store_id,
            content=content,
            summary=summary,
            key_points=key_points or [],
            topics=topics or [],
            meta=meta or {},
            status=status,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def update(db: Session, entry: KnowledgeBaseEntry, data: Dict[str, Any]) -> KnowledgeBaseEntry:
        for key, value in data.items():
            setattr(entry, key, value)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def delete(db: Session, entry: KnowledgeBaseEntry) -> bool:
        db.delete(entry)
        db.commit()
        return True

    @staticmethod
    def detach_openai_file(db: Session, assistant_id: str, file_id: str) -> int:
        """Сбрасывает ссылку на файл OpenAI, commit делает вызывающий"""
        return db.query(KnowledgeBaseEntry).filter(
            KnowledgeBaseEntry.assistant_id == assistant_id,
            KnowledgeBaseEntry.openai_file_id == file_id
        ).update({"openai_file_id": None, "vector_store_id": None}, synchronize_session="fetch")
