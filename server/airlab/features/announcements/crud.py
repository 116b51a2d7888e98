"""
CRUD операции для объявлений
"""
import logging
from typing import List, Optional, Dict, Any, Tuple
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...utils.timezone import TimezoneUtils
from .models import Announcement, AnnouncementRead

logger = logging.getLogger(__name__)


class AnnouncementCRUD:
    """CRUD для объявлений"""

    @staticmethod
    def get_by_id(db: Session, announcement_id: str) -> Optional[Announcement]:
        return db.query(Announcement).filter(Announcement.id == announcement_id).first()

    @staticmethod
    def get_all(db: Session) -> List[Announcement]:
        return db.query(Announcement).order_by(Announcement.created_at.desc()).all()

    @staticmethod
    def get_for_user(db: Session, user_id: str, role: str) -> List[Tuple[Announcement, bool]]:
        """
        Активные и не истёкшие объявления для роли пользователя:
        сначала закреплённые, затем новые. Возвращает пары (объявление, прочитано).
        """
        announcements = (
            db.query(Announcement)
            .filter(
                Announcement.is_active.is_(True),
                or_(Announcement.target_users == "all", Announcement.target_users == role),
            )
            .order_by(Announcement.is_pinned.desc(), Announcement.created_at.desc())
            .all()
        )
        # Сравнение сроков в Python: SQLite хранит даты без зоны
        visible = [a for a in announcements if not TimezoneUtils.is_past(a.expires_at)]

        read_ids = {
            row.announcement_id
            for row in db.query(AnnouncementRead.announcement_id).filter(AnnouncementRead.user_id == user_id)
        }
        return [(a, a.id in read_ids) for a in visible]

    @staticmethod
    def create(db: Session, data: Dict[str, Any], created_by: Optional[str] = None) -> Announcement:
        announcement = Announcement(created_by=created_by, **data)
        db.add(announcement)
        db.commit()
        db.refresh(announcement)
        logger.info(f"📢 Создано объявление {announcement.id}: {announcement.title}")
        return announcement

    @staticmethod
    def update(db: Session, announcement: Announcement, data: Dict[str, Any]) -> Announcement:
        for key, value in data.items():
            setattr(announcement, key, value)
        db.commit()
        db.refresh(announcement)
        return announcement

    @staticmethod
    def delete(db: Session, announcement: Announcement) -> bool:
        db.query(AnnouncementRead).filter(AnnouncementRead.announcement_id == announcement.id).delete()
        db.delete(announcement)
        db.commit()
        return True

    @staticmethod
    def mark_as_read(db: Session, user_id: str, announcement_id: str) -> bool:
        """Повторная отметка не создаёт дубликат"""
        exists = db.query(AnnouncementRead).filter(
            AnnouncementRead.user_id == user_id,
            AnnouncementRead.announcement_id == announcement_id
        ).first()
        if exists:
            return True
        try:
            db.add(AnnouncementRead(user_id=user_id, announcement_id=announcement_id))
            db.commit()
        except IntegrityError:
            db.rollback()
        return True
