from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ...core.database import get_db
from ..auth.dependencies import get_current_user, require_admin
from ..user.models import User
from .crud import AnnouncementCRUD
from .schemas import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse, UserAnnouncementResponse

logger = logging.getLogger(__name__)

announcements_router = APIRouter(prefix="/api/announcements", tags=["announcements"])
admin_announcements_router = APIRouter(prefix="/api/admin/announcements", tags=["admin"])


@announcements_router.get("", response_model=List[UserAnnouncementResponse])
async def get_my_announcements(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = []
    for announcement, is_read in AnnouncementCRUD.get_for_user(db, current_user.id, current_user.role):
        item = UserAnnouncementResponse.model_validate(announcement)
        item.is_read = is_read
        result.append(item)
    return result


@announcements_router.post("/{announcement_id}/read")
async def mark_announcement_read(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not AnnouncementCRUD.get_by_id(db, announcement_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")
    AnnouncementCRUD.mark_as_read(db, current_user.id, announcement_id)
    return {"success": True}


# === АДМИНИСТРИРОВАНИЕ ===

@admin_announcements_router.get("", response_model=List[AnnouncementResponse])
async def admin_list_announcements(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AnnouncementCRUD.get_all(db)


@admin_announcements_router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_announcement(
    data: AnnouncementCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return AnnouncementCRUD.create(db, data.model_dump(), created_by=admin.id)


@admin_announcements_router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def admin_update_announcement(
    announcement_id: str,
    data: AnnouncementUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    announcement = AnnouncementCRUD.get_by_id(db, announcement_id)
    if not announcement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")
    return AnnouncementCRUD.update(db, announcement, data.model_dump(exclude_unset=True))


@admin_announcements_router.delete("/{announcement_id}")
async def admin_delete_announcement(
    announcement_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    announcement = AnnouncementCRUD.get_by_id(db, announcement_id)
    if not announcement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")
    AnnouncementCRUD.delete(db, announcement)
    logger.info(f"🗑️ Объявление {announcement_id} удалено")
    return {"success": True}
