"""
Локальное хранилище загружаемых файлов.

Файлы лежат в PRIVATE_OBJECT_DIR/uploads/<uuid>, наружу отдаются
как /objects/uploads/<uuid>. Владелец выданного адреса загрузки
записывается в PRIVATE_OBJECT_DIR/.owners/<uuid>.
"""
import logging
import os
import uuid
from typing import Optional, Dict

from ...core.config import settings

logger = logging.getLogger(__name__)

OBJECT_PREFIX = "/objects/"
OWNERS_DIR = ".owners"


class ObjectNotFoundError(Exception):
    pass


class InvalidObjectPathError(ObjectNotFoundError):
    pass


class UploadOwnerError(Exception):
    pass


class ObjectStorageService:
    def __init__(self, root_dir: Optional[str] = None, public_base_url: Optional[str] = None):
        self.root_dir = os.path.abspath(root_dir or settings.PRIVATE_OBJECT_DIR)
        self.public_base_url = (public_base_url if public_base_url is not None else settings.PUBLIC_BASE_URL).rstrip("/")

    def _resolve(self, object_path: str) -> str:
        """Абсолютный путь к объекту; выход за пределы хранилища запрещён"""
        relative = object_path
        if relative.startswith(OBJECT_PREFIX):
            relative = relative[len(OBJECT_PREFIX):]
        relative = relative.lstrip("/")
        if not relative:
            raise InvalidObjectPathError(object_path)
        # Служебные файлы (.owners) наружу не отдаются
        if any(part.startswith(".") and part != ".." for part in relative.split("/")):
            raise InvalidObjectPathError(object_path)

        full_path = os.path.abspath(os.path.join(self.root_dir, relative))
        if os.path.commonpath([full_path, self.root_dir]) != self.root_dir:
            logger.warning(f"⚠️ Попытка выхода за пределы хранилища: {object_path}")
            raise InvalidObjectPathError(object_path)
        return full_path

    @staticmethod
    def _check_object_id(object_id: str) -> str:
        try:
            return str(uuid.UUID(object_id))
        except (ValueError, AttributeError):
            raise InvalidObjectPathError(object_id)

    def _owner_file(self, object_id: str) -> str:
        return os.path.join(self.root_dir, OWNERS_DIR, self._check_object_id(object_id))

    def create_upload(self, owner_id: Optional[str] = None) -> Dict[str, str]:
        """Выдаёт адрес для PUT-загрузки и путь будущего объекта"""
        object_id = str(uuid.uuid4())
        if owner_id:
            owner_file = self._owner_file(object_id)
            os.makedirs(os.path.dirname(owner_file), exist_ok=True)
            with open(owner_file, "w", encoding="utf-8") as f:
                f.write(owner_id)
        return {
            "uploadURL": f"{self.public_base_url}/api/objects/upload/{object_id}",
            "objectPath": f"{OBJECT_PREFIX}uploads/{object_id}",
        }

    def get_upload_owner(self, object_id: str) -> Optional[str]:
        owner_file = self._owner_file(object_id)
        if not os.path.isfile(owner_file):
            return None
        with open(owner_file, "r", encoding="utf-8") as f:
            return f.read().strip()

    def write_upload(self, object_id: str, owner_id: str, content: bytes) -> str:
        """
        Сохраняет загрузку по выданному адресу.

        object_id должен быть UUID, ранее выданным create_upload этому же пользователю.
        """
        object_id = self._check_object_id(object_id)
        owner = self.get_upload_owner(object_id)
        if owner is None:
            raise ObjectNotFoundError(object_id)
        if owner != owner_id:
            logger.warning(f"⚠️ Пользователь {owner_id} пытается загрузить в чужой объект {object_id}")
            raise UploadOwnerError(object_id)
        object_path = f"{OBJECT_PREFIX}uploads/{object_id}"
        self.write(object_path, content)
        return object_path

    def write(self, object_path: str, content: bytes) -> str:
        full_path = self._resolve(object_path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(content)
        logger.info(f"📦 Сохранён объект {object_path} ({len(content)} байт)")
        return full_path

    def read(self, object_path: str) -> bytes:
        full_path = self.get_path(object_path)
        with open(full_path, "rb") as f:
            return f.read()

    def get_path(self, object_path: str) -> str:
        full_path = self._resolve(object_path)
        if not os.path.isfile(full_path):
            raise ObjectNotFoundError(object_path)
        return full_path

    def delete(self, object_path: str) -> bool:
        try:
            full_path = self.get_path(object_path)
        except ObjectNotFoundError:
            return False
        os.remove(full_path)
        return True
