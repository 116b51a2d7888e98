from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List
import logging

from ...core.database import get_db
from ...services.openai_service import OpenAIServiceError, OpenAINotConfiguredError
from ...utils.headers import attachment_header
from ..auth.dependencies import get_current_user, ensure_self_or_admin
from ..user.models import User
from .crud import AssistantCRUD
from .dependencies import get_owned_assistant, get_assistant_service
from .models import Assistant
from .schemas import (
    AssistantCreate, AssistantUpdate, AssistantResponse, AssistantDetailResponse,
    AssistantExport, AssistantFileUpload, SyncFilesResponse
)
from .service import AssistantService, AssistantLimitError, AssistantNotLinkedError, FileDownloadError

logger = logging.getLogger(__name__)

assistants_router = APIRouter(prefix="/api/assistants", tags=["assistants"])


def _openai_error(e: Exception) -> HTTPException:
    if isinstance(e, OpenAINotConfiguredError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    logger.error(f"❌ Ошибка OpenAI: {e}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"OpenAI error: {e}")


@assistants_router.post("", response_model=AssistantResponse, status_code=status.HTTP_201_CREATED)
async def create_assistant(
    data: AssistantCreate,
    current_user: User = Depends(get_current_user),
    service: AssistantService = Depends(get_assistant_service)
):
    """Создание ассистента с учётом лимита тарифа"""
    try:
        assistant = await service.create(current_user, data)
    except AssistantLimitError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except OpenAIServiceError as e:
        raise _openai_error(e)
    logger.info(f"🤖 Пользователь {current_user.id} создал ассистента {assistant.id}")
    return assistant


@assistants_router.get("/my", response_model=List[AssistantResponse])
async def get_my_assistants(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AssistantCRUD.get_by_user(db, current_user.id)


@assistants_router.get("/user/{user_id}", response_model=List[AssistantResponse])
async def get_user_assistants(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ensure_self_or_admin(current_user, user_id)
    return AssistantCRUD.get_by_user(db, user_id)


@assistants_router.post("/import", response_model=AssistantResponse, status_code=status.HTTP_201_CREATED)
async def import_assistant(
    config: AssistantExport,
    current_user: User = Depends(get_current_user),
    service: AssistantService = Depends(get_assistant_service)
):
    """Создание ассистента из экспортированной конфигурации"""
    try:
        return await service.import_config(current_user, config)
    except AssistantLimitError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except OpenAIServiceError as e:
        raise _openai_error(e)


@assistants_router.get("/{assistant_id}", response_model=AssistantDetailResponse)
async def get_assistant(
    assistant: Assistant = Depends(get_owned_assistant),
    service: AssistantService = Depends(get_assistant_service)
):
    """
    Ассистент с актуальным списком файлов из OpenAI.
    Если OpenAI недоступен, отдаются только локальные данные.
    """
    result = AssistantDetailResponse.model_validate(assistant)
    file_ids = await service.get_openai_file_ids(assistant)
    if file_ids is not None:
        result.openai_file_ids = file_ids
        result.openai_file_count = len(file_ids)
    return result


@assistants_router.put("/{assistant_id}", response_model=AssistantResponse)
async def update_assistant(
    data: AssistantUpdate,
    assistant: Assistant = Depends(get_owned_assistant),
    service: AssistantService = Depends(get_assistant_service)
):
    try:
        return await service.update(assistant, data)
    except OpenAIServiceError as e:
        raise _openai_error(e)


@assistants_router.delete("/{assistant_id}")
async def delete_assistant(
    assistant: Assistant = Depends(get_owned_assistant),
    service: AssistantService = Depends(get_assistant_service)
):
    assistant_id = assistant.id
    result = await service.delete(assistant)
    logger.info(f"🗑️ Ассистент {assistant_id} удалён")
    return result


@assistants_router.get("/{assistant_id}/export")
async def export_assistant(assistant: Assistant = Depends(get_owned_assistant)):
    config = AssistantService.export_config(assistant)
    return JSONResponse(
        content=config,
        headers={"Content-Disposition": attachment_header(f"{assistant.name}-config.json")}
    )


@assistants_router.post("/{assistant_id}/sync-files", response_model=SyncFilesResponse)
async def sync_assistant_files(
    assistant: Assistant = Depends(get_owned_assistant),
    service: AssistantService = Depends(get_assistant_service)
):
    try:
        return await service.sync_files(assistant)
    except AssistantNotLinkedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OpenAIServiceError as e:
        raise _openai_error(e)


@assistants_router.post("/{assistant_id}/files")
async def add_assistant_file(
    data: AssistantFileUpload,
    assistant: Assistant = Depends(get_owned_assistant),
    service: AssistantService = Depends(get_assistant_service)
):
    """Добавление загруженного файла в vector store ассистента"""
    try:
        return await service.attach_file_from_url(assistant, data.file_url, data.file_name)
    except AssistantNotLinkedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except FileDownloadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OpenAIServiceError as e:
        raise _openai_error(e)
