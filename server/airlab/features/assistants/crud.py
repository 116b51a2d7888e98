"""
CRUD операции для ассистентов
"""
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from .models import Assistant

logger = logging.getLogger(__name__)


class AssistantCRUD:
    """CRUD для ассистентов"""

    @staticmethod
    def get_by_id(db: Session, assistant_id: str) -> Optional[Assistant]:
        return db.query(Assistant).filter(Assistant.id == assistant_id).first()

    @staticmethod
    def get_by_user(db: Session, user_id: str) -> List[Assistant]:
        """Ассистенты пользователя, новые первыми"""
        return (
            db.query(Assistant)
            .filter(Assistant.user_id == user_id)
            .order_by(Assistant.created_at.desc())
            .all()
        )

    @staticmethod
    def count_by_user(db: Session, user_id: str) -> int:
        return db.query(Assistant).filter(Assistant.user_id == user_id).count()

    @staticmethod
    def create(db: Session, user_id: str, data: Dict[str, Any]) -> Assistant:
        try:
            assistant = Assistant(user_id=user_id, **data)
            db.add(assistant)
            db.commit()
            db.refresh(assistant)
            logger.info(f"Создан ассистент {assistant.id} для пользователя {user_id}")
            return assistant
        except Exception as e:
            db.rollback()
            logger.error(f"Ошибка создания ассистента: {e}")
            raise

    @staticmethod
    def update(db: Session, assistant: Assistant, data: Dict[str, Any]) -> Assistant:
        try:
            for key, value in data.items():
                setattr(assistant, key, value)
            db.commit()
            db.refresh(assistant)
            return assistant
        except Exception as e:
            db.rollback()
            logger.error(f"Ошибка обновления ассистента {assistant.id}: {e}")
            raise

    @staticmethod
    def add_file(db: Session, assistant: Assistant, file_info: Dict[str, Any]) -> Assistant:
        # JSON-колонку нужно переприсвоить, иначе SQLAlchemy не увидит изменение
        assistant.files = [*(assistant.files or []), file_info]
        db.commit()
        db.refresh(assistant)
        return assistant

    @staticmethod
    def delete(db: Session, assistant: Assistant) -> bool:
        try:
            db.delete(assistant)
            db.commit()
            logger.info(f"Удалён ассистент {assistant.id}")
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Ошибка удаления ассистента {assistant.id}: {e}")
            raise
