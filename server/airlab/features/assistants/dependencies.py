from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...services.openai_service import OpenAIService, get_openai_service
from ..auth.dependencies import get_current_user
from ..objects.routes import get_object_storage
from ..objects.storage import ObjectStorageService
from ..user.models import User
from .crud import AssistantCRUD
from .models import Assistant
from .service import AssistantService


def get_owned_assistant_or_404(db: Session, assistant_id: str, user: User) -> Assistant:
    """Ассистент текущего пользователя; администратор видит всех"""
    assistant = AssistantCRUD.get_by_id(db, assistant_id)
    if not assistant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assistant not found")
    if assistant.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return assistant


def get_owned_assistant(
    assistant_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Assistant:
    return get_owned_assistant_or_404(db, assistant_id, current_user)


def get_assistant_service(
    db: Session = Depends(get_db),
    openai_service: OpenAIService = Depends(get_openai_service),
    storage: ObjectStorageService = Depends(get_object_storage)
) -> AssistantService:
    return AssistantService(db, openai_service, storage)
