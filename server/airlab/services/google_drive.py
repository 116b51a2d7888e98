"""
Доступ к закрытым документам через Google Drive API (сервисный аккаунт)
"""
import asyncio
import logging
import os
from typing import Optional, Dict, Any

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..core.config import settings

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/drive.readonly']
GOOGLE_DOC_MIME = "application/vnd.google-apps.document"


class GoogleDriveService:
    """
    Читает документы, к которым открыт доступ сервисному аккаунту.
    Без файла ключа сервис считается не настроенным и ничего не делает.
    """

    def __init__(self, key_file: Optional[str] = None):
        self.key_file = key_file
        self._drive = None

    @classmethod
    def from_settings(cls) -> "GoogleDriveService":
        return cls(settings.GOOGLE_SERVICE_ACCOUNT_FILE)

    @property
    def is_configured(self) -> bool:
        return bool(self.key_file) and os.path.exists(self.key_file)

    def _get_drive(self):
        """Инициализирует Google Drive API сервис"""
        if self._drive is None:
            credentials = service_account.Credentials.from_service_account_file(
                self.key_file,
                scopes=SCOPES
            )
            self._drive = build('drive', 'v3', credentials=credentials, cache_discovery=False)
            logger.info("Google Drive API сервис инициализирован")
        return self._drive

    def _get_file_info_sync(self, file_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._get_drive().files().get(
                fileId=file_id,
                fields="id,name,mimeType,webViewLink"
            ).execute()
        except HttpError as e:
            logger.warning(f"⚠️ Drive: файл {file_id} недоступен: {e}")
            return None

    def _get_content_sync(self, file_id: str) -> Optional[str]:
        info = self._get_file_info_sync(file_id)
        if not info:
            return None

        files = self._get_drive().files()
        mime_type = info.get("mimeType", "")
        try:
            if mime_type == GOOGLE_DOC_MIME:
                data = files.export(fileId=file_id, mimeType="text/plain").execute()
            elif mime_type.startswith("text/"):
                data = files.get_media(fileId=file_id).execute()
            else:
                logger.info(f"Drive: тип {mime_type} не поддерживается для {file_id}")
                return None
        except HttpError as e:
            logger.error(f"❌ Drive: ошибка чтения {file_id}: {e}")
            return None

        if isinstance(data, bytes):
            return data.decode("utf-8", errors="replace")
        return data

    async def get_file_info(self, file_id: str) -> Optional[Dict[str, Any]]:
        if not self.is_configured:
            return None
        return await asyncio.to_thread(self._get_file_info_sync, file_id)

    async def get_document_content(self, file_id: str) -> Optional[str]:
        if not self.is_configured:
            return None
        return await asyncio.to_thread(self._get_content_sync, file_id)
