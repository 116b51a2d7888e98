"""
CRUD операции для интеграций
"""
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from .models import Integration

logger = logging.getLogger(__name__)


class IntegrationCRUD:
    """CRUD для интеграций"""

    @staticmethod
    def get_by_id(db: Session, integration_id: str) -> Optional[Integration]:
        return db.query(Integration).filter(Integration.id == integration_id).first()

    @staticmethod
    def get_owned(db: Session, integration_id: str, user_id: str) -> Optional[Integration]:
        return db.query(Integration).filter(
            Integration.id == integration_id,
            Integration.user_id == user_id
        ).first()

    @staticmethod
    def get_by_user(db: Session, user_id: str) -> List[Integration]:
        return (
            db.query(Integration)
            .filter(Integration.user_id == user_id)
            .order_by(Integration.created_at.desc())
            .all()
        )

    @staticmethod
    def create(db: Session, user_id: str, type: str, name: str, config: Dict[str, Any]) -> Integration:
        integration = Integration(user_id=user_id, type=type, name=name, config=config)
        db.add(integration)
        db.commit()
        db.refresh(integration)
        logger.info(f"Создана интеграция {type} {integration.id} для пользователя {user_id}")
        return integration

    @staticmethod
    def update(db: Session, integration: Integration, data: Dict[str, Any]) -> Integration:
        for key, value in data.items():
            setattr(integration, key, value)
        db.commit()
        db.refresh(integration)
        return integration

    @staticmethod
    def delete(db: Session, integration: Integration) -> bool:
        db.delete(integration)
        db.commit()
        return True
