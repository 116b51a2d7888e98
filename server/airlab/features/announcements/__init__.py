"""
Объявления администрации для пользователей.
"""

from .models import Announcement, AnnouncementRead
from .crud import AnnouncementCRUD

__all__ = [
    "Announcement",
    "AnnouncementRead",
    "AnnouncementCRUD"
]
