"""
Бизнес-логика ассистентов: синхронизация с OpenAI, vector store, файлы
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.orm import Session

from ...services.openai_service import OpenAIService, OpenAIServiceError
from ...utils.timezone import TimezoneUtils
from ..billing.crud import PlanCRUD
from ..knowledge.crud import GoogleDocsCRUD, KnowledgeBaseCRUD
from ..objects.storage import ObjectStorageService, ObjectNotFoundError
from ..user.models import User
from .crud import AssistantCRUD
from .models import Assistant, DEFAULT_TOOLS
from .schemas import AssistantCreate, AssistantUpdate, AssistantExport

logger = logging.getLogger(__name__)


class AssistantLimitError(Exception):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Лимит ассистентов на вашем тарифе исчерпан ({limit})")


class AssistantNotLinkedError(Exception):
    def __init__(self):
        super().__init__("Assistant is not linked to OpenAI")


class FileDownloadError(Exception):
    pass


class AssistantService:
    def __init__(
        self,
        db: Session,
        openai_service: OpenAIService,
        storage: Optional[ObjectStorageService] = None,
    ):
        self.db = db
        self.openai = openai_service
        self.storage = storage or ObjectStorageService()

    # === СОЗДАНИЕ / ИЗМЕНЕНИЕ / УДАЛЕНИЕ ===

    def check_limit(self, user: User):
        if user.is_admin:
            return
        limit = PlanCRUD.get_features(self.db, user.plan).get("maxAssistants", 1)
        if limit is not None and limit >= 0 and AssistantCRUD.count_by_user(self.db, user.id) >= limit:
            raise AssistantLimitError(limit)

    async def create(self, user: User, data: AssistantCreate) -> Assistant:
        """
        Создаёт ассистента в OpenAI и сохраняет локально.
        Без ключа OpenAI ассистент сохраняется только локально.
        """
        self.check_limit(user)

        if data.tools is None:
            tools = [dict(t) for t in DEFAULT_TOOLS]
        else:
            tools = [t.model_dump() for t in data.tools]
        openai_assistant_id = None
        if self.openai.is_configured:
            remote = await self.openai.create_assistant(
                name=data.name,
                instructions=data.instructions,
                model=data.model,
                tools=tools,
                system_prompt=data.system_prompt,
                temperature=data.temperature,
                description=data.description,
            )
            openai_assistant_id = remote.id
        else:
            logger.warning(f"⚠️ OpenAI не настроен, ассистент {data.name} создаётся только локально")

        payload = data.model_dump(exclude={"tools", "files"})
        payload["tools"] = tools
        payload["files"] = [f.model_dump() for f in data.files]
        payload["openai_assistant_id"] = openai_assistant_id
        try:
            return AssistantCRUD.create(self.db, user.id, payload)
        except Exception:
            # Не оставляем сироту в OpenAI
            if openai_assistant_id:
                await self._safe_delete_remote(openai_assistant_id, None)
            raise

    async def update(self, assistant: Assistant, data: AssistantUpdate) -> Assistant:
        updates = data.model_dump(exclude_unset=True)
        if "tools" in updates and updates["tools"] is not None:
            updates["tools"] = [t.model_dump() for t in data.tools]
        if "files" in updates and updates["files"] is not None:
            updates["files"] = [f.model_dump() for f in data.files]

        if assistant.openai_assistant_id and self.openai.is_configured:
            remote_fields = {
                key: updates.get(key)
                for key in ("name", "instructions", "model", "tools", "temperature", "description")
            }
            if "system_prompt" in updates or "instructions" in updates:
                # instructions в OpenAI собираются из обоих полей
                remote_fields["instructions"] = updates.get("instructions", assistant.instructions)
                remote_fields["system_prompt"] = updates.get("system_prompt", assistant.system_prompt)
            await self.openai.update_assistant(assistant.openai_assistant_id, **remote_fields)

        return AssistantCRUD.update(self.db, assistant, updates)

    async def _safe_delete_remote(self, openai_assistant_id: str, vector_store_id: Optional[str]) -> bool:
        deleted = True
        try:
            await self.openai.delete_assistant(openai_assistant_id)
        except OpenAIServiceError as e:
            logger.error(f"❌ Не удалось удалить ассистента {openai_assistant_id} в OpenAI: {e}")
            deleted = False
        if vector_store_id:
            try:
                await self.openai.delete_vector_store(vector_store_id)
            except OpenAIServiceError as e:
                logger.warning(f"⚠️ Не удалось удалить vector store {vector_store_id}: {e}")
        return deleted

    async def delete(self, assistant: Assistant) -> Dict[str, Any]:
        """
        Удаляет ассистента. Сначала пытается удалить его в OpenAI;
        ошибка OpenAI не мешает удалению локальной записи.
        """
        remote_deleted = None
        if assistant.openai_assistant_id and self.openai.is_configured:
            remote_deleted = await self._safe_delete_remote(
                assistant.openai_assistant_id, assistant.vector_store_id
            )
        AssistantCRUD.delete(self.db, assistant)
        return {"success": True, "openaiDeleted": remote_deleted}

    # === ФАЙЛЫ OPENAI ===

    async def get_openai_file_ids(self, assistant: Assistant) -> Optional[List[str]]:
        """ID файлов в OpenAI; None если синхронизация невозможна"""
        if not assistant.openai_assistant_id or not self.openai.is_configured:
            return None
        try:
            return await self.openai.get_assistant_files(assistant.openai_assistant_id)
        except OpenAIServiceError as e:
            logger.warning(f"⚠️ Не удалось получить файлы ассистента {assistant.id} из OpenAI: {e}")
            return None

    async def ensure_vector_store(self, assistant: Assistant) -> str:
        """Vector store ассистента; создаётся и привязывается при первом обращении"""
        if not assistant.openai_assistant_id:
            raise AssistantNotLinkedError()
        if assistant.vector_store_id:
            return assistant.vector_store_id

        store_id = await self.openai.create_vector_store(f"{assistant.name} knowledge base")
        await self.openai.attach_vector_store(assistant.openai_assistant_id, store_id)

        tools = [dict(t) for t in (assistant.tools or []) if t.get("type") != "file_search"]
        tools.append({"type": "file_search", "enabled": True})
        AssistantCRUD.update(self.db, assistant, {"vector_store_id": store_id, "tools": tools})
        logger.info(f"📚 Ассистенту {assistant.id} привязан vector store {store_id}")
        return store_id

    async def add_document(self, assistant: Assistant, content: bytes, filename: str) -> Dict[str, str]:
        """Загружает файл в OpenAI и кладёт его в vector store ассистента"""
        store_id = await self.ensure_vector_store(assistant)
        file_id = await self.openai.upload_file(content, filename)
        await self.openai.add_file_to_vector_store(store_id, file_id)
        return {"file_id": file_id, "vector_store_id": store_id}

    async def remove_document(self, assistant: Assistant, file_id: str) -> bool:
        if not assistant.vector_store_id:
            return False
        await self.openai.remove_file_from_vector_store(assistant.vector_store_id, file_id)
        try:
            await self.openai.delete_file(file_id)
        except OpenAIServiceError as e:
            logger.warning(f"⚠️ Файл {file_id} убран из vector store, но не удалён: {e}")
        return True

    def forget_file(self, assistant: Assistant, file_id: str, commit: bool = True):
        """Убирает file_id из файлов ассистента, документов и базы знаний"""
        assistant.files = [f for f in (assistant.files or []) if f.get("id") != file_id]
        docs = GoogleDocsCRUD.detach_openai_file(self.db, assistant.id, file_id)
        entries = KnowledgeBaseCRUD.detach_openai_file(self.db, assistant.id, file_id)
        if commit:
            self.db.commit()
        logger.info(f"🧹 Файл {file_id} отвязан: документов {docs}, записей базы знаний {entries}")

    async def download(self, file_url: str) -> bytes:
        """Содержимое файла из хранилища (/objects/...) или по абсолютному URL"""
        if not file_url.startswith(("http://", "https://")):
            try:
                return self.storage.read(file_url)
            except ObjectNotFoundError:
                raise FileDownloadError(f"File not found: {file_url}")

        try:
            async with httpx.AsyncClient(timeout=60.0, follow_redirects=True) as client:
                response = await client.get(file_url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.error(f"❌ Не удалось скачать файл {file_url}: {e}")
            raise FileDownloadError(f"Failed to download file: {e}")

    async def attach_file_from_url(self, assistant: Assistant, file_url: str, file_name: str) -> Dict[str, Any]:
        content = await self.download(file_url)
        result = await self.add_document(assistant, content, file_name)

        file_info = {"id": result["file_id"], "name": file_name, "path": file_url}
        AssistantCRUD.add_file(self.db, assistant, file_info)
        KnowledgeBaseCRUD.create(
            self.db,
            user_id=assistant.user_id,
            assistant_id=assistant.id,
            title=file_name,
            source_type="file",
            source_id=file_url,
            openai_file_id=result["file_id"],
            vector_store_id=result["vector_store_id"],
            meta={"size": len(content)},
        )
        logger.info(f"📄 Файл {file_name} добавлен ассистенту {assistant.id}")
        return {"success": True, "file": file_info, "vectorStoreId": result["vector_store_id"]}

    async def sync_files(self, assistant: Assistant) -> Dict[str, Any]:
        """Загружает в vector store все обработанные Google Docs ассистента"""
        if not assistant.openai_assistant_id:
            raise AssistantNotLinkedError()

        documents = GoogleDocsCRUD.get_completed_by_assistant(self.db, assistant.id)
        file_ids = []
        for doc in documents:
            if not doc.content:
                continue
            if not doc.openai_file_id:
                result = await self.add_document(assistant, doc.content.encode("utf-8"), f"{doc.title}.txt")
                GoogleDocsCRUD.update(self.db, doc, {"openai_file_id": result["file_id"]})
            file_ids.append(doc.openai_file_id)

        return {
            "success": True,
            "files_count": len(file_ids),
            "file_ids": file_ids,
            "message": f"Синхронизировано документов: {len(file_ids)}",
        }

    # === ЭКСПОРТ / ИМПОРТ ===

    @staticmethod
    def export_config(assistant: Assistant) -> Dict[str, Any]:
        config = AssistantExport(
            name=assistant.name,
            description=assistant.description,
            instructions=assistant.instructions,
            system_prompt=assistant.system_prompt,
            model=assistant.model,
            temperature=assistant.temperature,
            tools=assistant.tools or [],
            files=assistant.files or [],
            exported_at=TimezoneUtils.iso_now(),
        )
        return config.model_dump(by_alias=True)

    async def import_config(self, user: User, config: AssistantExport) -> Assistant:
        data = AssistantCreate(
            name=config.name,
            description=config.description,
            instructions=config.instructions,
            system_prompt=config.system_prompt,
            model=config.model,
            temperature=config.temperature,
            tools=config.tools,
        )
        return await self.create(user, data)
