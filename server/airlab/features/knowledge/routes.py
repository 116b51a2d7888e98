from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ...core.database import get_db, SessionLocal
from ...services.google_docs import GoogleDocsService, extract_doc_id
from ...services.openai_service import OpenAIService, OpenAIServiceError, get_openai_service
from ..assistants.dependencies import get_owned_assistant, get_owned_assistant_or_404
from ..assistants.models import Assistant
from ..assistants.service import AssistantService
from ..auth.dependencies import get_current_user
from ..user.models import User
from .crud import GoogleDocsCRUD, KnowledgeBaseCRUD
from .pipeline import KnowledgePipeline
from .schemas import (
    GoogleDocImportRequest, GoogleDocImportResponse, GoogleDocResponse,
    KnowledgeEntryCreate, KnowledgeEntryResponse, VectorStoreFilesResponse
)
from .tasks import process_google_doc_task, process_knowledge_entry_task

logger = logging.getLogger(__name__)

knowledge_router = APIRouter(prefix="/api", tags=["knowledge"])


def get_google_docs_service() -> GoogleDocsService:
    return GoogleDocsService()


async def _run_in_process(kind: str, object_id: str):
    """Обработка без Celery, когда брокер недоступен"""
    db = SessionLocal()
    try:
        pipeline = KnowledgePipeline(db)
        if kind == "google_doc":
            await pipeline.process_google_doc(object_id)
        else:
            await pipeline.process_text_entry(object_id)
    finally:
        db.close()


def _enqueue(task, kind: str, object_id: str, background_tasks: BackgroundTasks):
    try:
        task.delay(object_id)
        logger.info(f"📨 Задача {task.name} поставлена в очередь для {object_id}")
    except Exception as e:
        logger.warning(f"⚠️ Celery недоступен ({e}), обрабатываем {object_id} в процессе API")
        background_tasks.add_task(_run_in_process, kind, object_id)


def _raise_upstream(e: OpenAIServiceError):
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


# === GOOGLE DOCS ===

@knowledge_router.post(
    "/assistants/{assistant_id}/google-drive",
    response_model=GoogleDocImportResponse,
)
async def import_google_doc(
    data: GoogleDocImportRequest,
    background_tasks: BackgroundTasks,
    assistant: Assistant = Depends(get_owned_assistant),
    current_user: User = Depends(get_current_user),
    docs: GoogleDocsService = Depends(get_google_docs_service),
    db: Session = Depends(get_db)
):
    """
    Подключает Google Doc к ассистенту. Документ сохраняется со статусом
    processing, текст и анализ готовятся в фоне.
    """
    if not data.document_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Document URL is required")

    doc_id = extract_doc_id(data.document_url)
    if not doc_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Google Docs URL")

    doc_info = await docs.get_doc_info(doc_id)
    if not doc_info:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found or not publicly accessible"
        )

    document = GoogleDocsCRUD.create(
        db,
        user_id=current_user.id,
        assistant_id=assistant.id,
        title=doc_info["title"],
        url=data.document_url,
    )
    _enqueue(process_google_doc_task, "google_doc", document.id, background_tasks)

    return {
        "success": True,
        "document_id": document.id,
        "title": document.title,
        "message": "Document added and is being processed",
    }


@knowledge_router.get("/assistants/{assistant_id}/google-drive", response_model=List[GoogleDocResponse])
async def list_assistant_google_docs(
    assistant: Assistant = Depends(get_owned_assistant),
    db: Session = Depends(get_db)
):
    return GoogleDocsCRUD.get_by_assistant(db, assistant.id)


@knowledge_router.get("/google-docs/all", response_model=List[GoogleDocResponse])
async def list_my_google_docs(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return GoogleDocsCRUD.get_by_user(db, current_user.id)


@knowledge_router.post("/assistants/{assistant_id}/update-files")
async def update_assistant_files(
    assistant: Assistant = Depends(get_owned_assistant),
    db: Session = Depends(get_db)
):
    """Сводка обработанных документов ассистента"""
    documents = GoogleDocsCRUD.get_completed_by_assistant(db, assistant.id)
    return {
        "success": True,
        "documentsCount": len(documents),
        "documents": [
            {"id": d.id, "title": d.title, "openaiFileId": d.openai_file_id, "contentLength": d.content_length}
            for d in documents
        ],
        "message": f"Готово документов: {len(documents)}",
    }


@knowledge_router.delete("/google-drive/{document_id}")
async def delete_google_doc(
    document_id: str,
    current_user: User = Depends(get_current_user),
    openai_service: OpenAIService = Depends(get_openai_service),
    db: Session = Depends(get_db)
):
    document = GoogleDocsCRUD.get_by_id(db, document_id)
    if not document or (document.user_id != current_user.id and not current_user.is_admin):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    if document.openai_file_id and openai_service.is_configured:
        try:
            await AssistantService(db, openai_service).remove_document(document.assistant, document.openai_file_id)
        except OpenAIServiceError as e:
            logger.warning(f"⚠️ Не удалось убрать файл {document.openai_file_id} из OpenAI: {e}")

    entry = KnowledgeBaseCRUD.get_by_source(db, "google_doc", document.id)
    if entry:
        KnowledgeBaseCRUD.delete(db, entry)
    GoogleDocsCRUD.delete(db, document)
    return {"success": True}


# === БАЗА ЗНАНИЙ ===

@knowledge_router.get(
    "/knowledge-base/assistant/{assistant_id}",
    response_model=List[KnowledgeEntryResponse],
)
async def list_knowledge_base(
    assistant: Assistant = Depends(get_owned_assistant),
    db: Session = Depends(get_db)
):
    return KnowledgeBaseCRUD.get_by_assistant(db, assistant.id)


@knowledge_router.post(
    "/knowledge-base",
    response_model=KnowledgeEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_knowledge_entry(
    data: KnowledgeEntryCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    assistant = get_owned_assistant_or_404(db, data.assistant_id, current_user)
    entry = KnowledgeBaseCRUD.create(
        db,
        user_id=current_user.id,
        assistant_id=assistant.id,
        title=data.title,
        source_type="text",
        content=data.content,
        status="processing",
    )
    _enqueue(process_knowledge_entry_task, "text", entry.id, background_tasks)
    return entry


@knowledge_router.delete("/knowledge-base/{entry_id}")
async def delete_knowledge_entry(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    openai_service: OpenAIService = Depends(get_openai_service),
    db: Session = Depends(get_db)
):
    entry = KnowledgeBaseCRUD.get_by_id(db, entry_id)
    if not entry or (entry.user_id != current_user.id and not current_user.is_admin):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Knowledge base entry not found")

    if entry.openai_file_id and openai_service.is_configured:
        service = AssistantService(db, openai_service)
        try:
            await service.remove_document(entry.assistant, entry.openai_file_id)
            # Документ-источник больше не ссылается на удалённый файл
            service.forget_file(entry.assistant, entry.openai_file_id, commit=False)
        except OpenAIServiceError as e:
            logger.warning(f"⚠️ Не удалось убрать файл {entry.openai_file_id} из OpenAI: {e}")

    KnowledgeBaseCRUD.delete(db, entry)
    return {"success": True}


# === VECTOR STORE ===

@knowledge_router.get("/assistants/{assistant_id}/vector-store", response_model=VectorStoreFilesResponse)
async def list_vector_store_files(
    assistant: Assistant = Depends(get_owned_assistant),
    openai_service: OpenAIService = Depends(get_openai_service)
):
    if not assistant.vector_store_id:
        return {"vector_store_id": None, "files": []}
    try:
        files = await openai_service.list_vector_store_files(assistant.vector_store_id)
    except OpenAIServiceError as e:
        _raise_upstream(e)
    return {"vector_store_id": assistant.vector_store_id, "files": files}


@knowledge_router.delete("/assistants/{assistant_id}/vector-store/files/{file_id}")
async def remove_vector_store_file(
    file_id: str,
    assistant: Assistant = Depends(get_owned_assistant),
    openai_service: OpenAIService = Depends(get_openai_service),
    db: Session = Depends(get_db)
):
    if not assistant.vector_store_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assistant has no vector store")
    service = AssistantService(db, openai_service)
    try:
        await service.remove_document(assistant, file_id)
    except OpenAIServiceError as e:
        _raise_upstream(e)

    service.forget_file(assistant, file_id)
    return {"success": True}
