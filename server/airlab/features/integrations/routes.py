from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import Any, Dict, List
import logging

from ...core.database import get_db
from ..assistants.dependencies import get_owned_assistant_or_404
from ..auth.dependencies import get_current_user
from ..user.models import User
from .crud import IntegrationCRUD
from .models import Integration
from .schemas import (
    CONFIG_SCHEMAS, IntegrationCreate, IntegrationUpdate, IntegrationResponse,
    TelegramIntegrationCreate, VKIntegrationCreate, WhatsAppIntegrationCreate, OpenAIIntegrationCreate,
    is_masked
)

logger = logging.getLogger(__name__)

integrations_router = APIRouter(prefix="/api/integrations", tags=["integrations"])


def _validate_config(integration_type: str, config: Dict[str, Any]) -> Dict[str, Any]:
    try:
        validated = CONFIG_SCHEMAS[integration_type].model_validate(config)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(loc) for loc in error["loc"])
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Некорректная конфигурация: {field}: {error['msg']}"
        )
    return validated.model_dump(by_alias=True, exclude_none=True)


def _create(db: Session, user: User, integration_type: str, name: str, config: Dict[str, Any]) -> Integration:
    assistant_id = config.get("assistantId")
    if assistant_id:
        get_owned_assistant_or_404(db, assistant_id, user)
    integration = IntegrationCRUD.create(db, user.id, integration_type, name, config)
    logger.info(f"🔌 Пользователь {user.id} подключил {integration_type}: {name}")
    return integration


def get_owned_integration(
    integration_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Integration:
    # Чужая интеграция неотличима от несуществующей
    integration = IntegrationCRUD.get_owned(db, integration_id, current_user.id)
    if not integration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Интеграция не найдена")
    return integration


@integrations_router.get("", response_model=List[IntegrationResponse])
async def list_integrations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return IntegrationCRUD.get_by_user(db, current_user.id)


@integrations_router.post("", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
async def create_integration(
    data: IntegrationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    config = _validate_config(data.type, data.config)
    return _create(db, current_user, data.type, data.name, config)


@integrations_router.post("/telegram", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
async def create_telegram_integration(
    data: TelegramIntegrationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _create(db, current_user, "telegram", data.name, data.config.model_dump(by_alias=True, exclude_none=True))


@integrations_router.post("/vk", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
async def create_vk_integration(
    data: VKIntegrationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _create(db, current_user, "vk", data.name, data.config.model_dump(by_alias=True, exclude_none=True))


@integrations_router.post("/whatsapp", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
async def create_whatsapp_integration(
    data: WhatsAppIntegrationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _create(db, current_user, "whatsapp", data.name, data.config.model_dump(by_alias=True, exclude_none=True))


@integrations_router.post("/openai", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
async def create_openai_integration(
    data: OpenAIIntegrationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _create(db, current_user, "openai", data.name, data.config.model_dump(by_alias=True, exclude_none=True))


@integrations_router.put("/{integration_id}", response_model=IntegrationResponse)
async def update_integration(
    data: IntegrationUpdate,
    integration: Integration = Depends(get_owned_integration),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Обновление интеграции. Замаскированные секреты, пришедшие обратно
    от клиента, не перезаписывают сохранённые значения.
    """
    updates = data.model_dump(exclude_unset=True, exclude={"config"})
    if data.config is not None:
        merged = dict(integration.config or {})
        for key, value in data.config.items():
            if not is_masked(value):
                merged[key] = value
        config = _validate_config(integration.type, merged)
        if config.get("assistantId") and config.get("assistantId") != (integration.config or {}).get("assistantId"):
            get_owned_assistant_or_404(db, config["assistantId"], current_user)
        updates["config"] = config
    return IntegrationCRUD.update(db, integration, updates)


@integrations_router.delete("/{integration_id}")
async def delete_integration(
    integration: Integration = Depends(get_owned_integration),
    db: Session = Depends(get_db)
):
    IntegrationCRUD.delete(db, integration)
    return {"success": True}
