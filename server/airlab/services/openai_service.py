"""
Обёртка над OpenAI Assistants API: ассистенты, треды, запуски, файлы и vector stores
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from ..core.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_TOOLS = ("code_interpreter", "file_search")
TERMINAL_RUN_STATUSES = ("completed", "failed", "cancelled", "expired")
EMPTY_REPLY = "I apologize, but I couldn't generate a response."
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class OpenAIServiceError(Exception):
    """Ошибка при обращении к OpenAI"""


class OpenAINotConfiguredError(OpenAIServiceError):
    def __init__(self):
        super().__init__("OpenAI API key not configured on server")


class RunFailedError(OpenAIServiceError):
    def __init__(self, status: str, last_error: Optional[str] = None):
        self.status = status
        message = f"Run failed with status: {status}"
        if last_error:
            message += f" ({last_error})"
        super().__init__(message)


class RunTimeoutError(OpenAIServiceError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Run did not finish after {attempts} polling attempts")


def build_tools(tools: Optional[List[Dict[str, Any]]]) -> List[Dict[str, str]]:
    """В OpenAI уходят только включённые code_interpreter и file_search"""
    result = []
    for tool in tools or []:
        tool_type = tool.get("type")
        if tool.get("enabled", True) and tool_type in SUPPORTED_TOOLS:
            if {"type": tool_type} not in result:
                result.append({"type": tool_type})
    return result


def build_instructions(instructions: Optional[str], system_prompt: Optional[str] = None) -> str:
    parts = [p.strip() for p in (system_prompt, instructions) if p and p.strip()]
    return "\n\n".join(parts)


def extract_message_text(message) -> str:
    """Склеивает текстовые блоки сообщения треда"""
    chunks = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "text":
            chunks.append(block.text.value)
    return "\n".join(chunks)


class OpenAIService:
    """Сервис работы с OpenAI Assistants API"""

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.default_model = settings.DEFAULT_MODEL
        self.poll_max_attempts = settings.RUN_POLL_MAX_ATTEMPTS
        self.poll_interval = settings.RUN_POLL_INTERVAL

        if client is not None:
            self.client = client
        elif self.api_key:
            base_url = settings.OPENAI_BASE_URL
            self.client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=base_url if base_url.strip() else None
            )
        else:
            self.client = None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def require_client(self) -> AsyncOpenAI:
        if not self.client:
            raise OpenAINotConfiguredError()
        return self.client

    # === АССИСТЕНТЫ ===

    async def create_assistant(
        self,
        name: str,
        instructions: Optional[str] = None,
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        description: Optional[str] = None,
    ):
        client = self.require_client()
        params = {
            "name": name,
            "instructions": build_instructions(instructions, system_prompt),
            "model": model or self.default_model,
            "tools": build_tools(tools),
        }
        if description:
            params["description"] = description[:512]
        if temperature is not None:
            params["temperature"] = temperature
        try:
            assistant = await client.beta.assistants.create(**params)
            logger.info(f"🤖 Создан ассистент OpenAI {assistant.id} ({name})")
            return assistant
        except OpenAIError as e:
            logger.error(f"❌ Ошибка создания ассистента OpenAI: {e}")
            raise OpenAIServiceError(f"Failed to create assistant: {e}")

    async def update_assistant(self, assistant_id: str, **fields):
        """
        Обновление ассистента. Принимает те же поля, что и create_assistant;
        не переданные (None) поля не трогаются.
        """
        client = self.require_client()
        params: Dict[str, Any] = {}
        if fields.get("name") is not None:
            params["name"] = fields["name"]
        if fields.get("instructions") is not None or fields.get("system_prompt") is not None:
            params["instructions"] = build_instructions(
                fields.get("instructions"), fields.get("system_prompt")
            )
        if fields.get("model") is not None:
            params["model"] = fields["model"]
        if fields.get("tools") is not None:
            params["tools"] = build_tools(fields["tools"])
        if fields.get("temperature") is not None:
            params["temperature"] = fields["temperature"]
        if fields.get("description") is not None:
            params["description"] = fields["description"][:512]
        try:
            assistant = await client.beta.assistants.update(assistant_id, **params)
            logger.info(f"🤖 Обновлён ассистент OpenAI {assistant_id}")
            return assistant
        except OpenAIError as e:
            logger.error(f"❌ Ошибка обновления ассистента {assistant_id}: {e}")
            raise OpenAIServiceError(f"Failed to update assistant: {e}")

    async def get_assistant(self, assistant_id: str):
        client = self.require_client()
        try:
            return await client.beta.assistants.retrieve(assistant_id)
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to retrieve assistant: {e}")

    async def delete_assistant(self, assistant_id: str) -> bool:
        client = self.require_client()
        try:
            await client.beta.assistants.delete(assistant_id)
            logger.info(f"🗑️ Удалён ассистент OpenAI {assistant_id}")
            return True
        except OpenAIError as e:
            logger.error(f"❌ Ошибка удаления ассистента {assistant_id}: {e}")
            raise OpenAIServiceError(f"Failed to delete assistant: {e}")

    # === ТРЕДЫ И ЗАПУСКИ ===

    async def create_thread(self) -> str:
        client = self.require_client()
        try:
            thread = await client.beta.threads.create()
            return thread.id
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to create thread: {e}")

    async def send_message(self, thread_id: str, content: str, role: str = "user"):
        client = self.require_client()
        try:
            return await client.beta.threads.messages.create(
                thread_id, role=role, content=content
            )
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to send message: {e}")

    async def add_document_context(self, thread_id: str, title: str, content: str):
        """Подкладывает текст документа в тред как сообщение пользователя"""
        text = f"Контекст из документа «{title}»:\n\n{content}"
        return await self.send_message(thread_id, text)

    async def run_assistant(self, thread_id: str, assistant_id: str) -> str:
        """
        Запускает ассистента на треде и опрашивает статус запуска.

        Не более poll_max_attempts опросов с паузой poll_interval секунд.
        Возвращает текст последнего сообщения ассистента.
        """
        client = self.require_client()
        try:
            run = await client.beta.threads.runs.create(thread_id, assistant_id=assistant_id)
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to start run: {e}")

        status = run.status
        attempts = 0
        while status not in TERMINAL_RUN_STATUSES:
            if attempts >= self.poll_max_attempts:
                logger.warning(f"⚠️ Run {run.id} не завершился за {attempts} попыток")
                raise RunTimeoutError(attempts)
            await asyncio.sleep(self.poll_interval)
            attempts += 1
            try:
                run = await client.beta.threads.runs.retrieve(run.id, thread_id=thread_id)
            except OpenAIError as e:
                raise OpenAIServiceError(f"Failed to poll run: {e}")
            status = run.status

        if status != "completed":
            last_error = getattr(getattr(run, "last_error", None), "message", None)
            logger.error(f"❌ Run {run.id} завершился со статусом {status}")
            raise RunFailedError(status, last_error)

        try:
            messages = await client.beta.threads.messages.list(thread_id, order="desc", limit=10)
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to read messages: {e}")

        for message in messages.data:
            if message.role == "assistant":
                return extract_message_text(message) or EMPTY_REPLY
        return EMPTY_REPLY

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, str]] = None,
    ) -> str:
        client = self.require_client()
        params: Dict[str, Any] = {
            "model": model or self.default_model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            params["max_tokens"] = max_tokens
        if response_format:
            params["response_format"] = response_format
        try:
            logger.info(f"🤖 Calling OpenAI: model={params['model']}, messages={len(messages)}")
            response = await client.chat.completions.create(**params)
            return response.choices[0].message.content or ""
        except OpenAIError as e:
            logger.error(f"❌ OpenAI API error: {str(e)}")
            raise OpenAIServiceError(f"Chat completion failed: {e}")

    # === ФАЙЛЫ И VECTOR STORES ===

    async def upload_file(self, content: bytes, filename: str, purpose: str = "assistants") -> str:
        client = self.require_client()
        try:
            uploaded = await client.files.create(file=(filename, content), purpose=purpose)
            logger.info(f"📄 Загружен файл {filename} в OpenAI: {uploaded.id}")
            return uploaded.id
        except OpenAIError as e:
            logger.error(f"❌ Ошибка загрузки файла {filename}: {e}")
            raise OpenAIServiceError(f"Failed to upload file: {e}")

    async def delete_file(self, file_id: str) -> bool:
        client = self.require_client()
        try:
            await client.files.delete(file_id)
            return True
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to delete file: {e}")

    async def create_vector_store(self, name: str) -> str:
        client = self.require_client()
        try:
            store = await client.vector_stores.create(name=name)
            logger.info(f"📚 Создан vector store {store.id} ({name})")
            return store.id
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to create vector store: {e}")

    async def delete_vector_store(self, vector_store_id: str) -> bool:
        client = self.require_client()
        try:
            await client.vector_stores.delete(vector_store_id)
            return True
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to delete vector store: {e}")

    async def add_file_to_vector_store(self, vector_store_id: str, file_id: str):
        client = self.require_client()
        try:
            return await client.vector_stores.files.create(
                vector_store_id=vector_store_id, file_id=file_id
            )
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to add file to vector store: {e}")

    async def list_vector_store_files(self, vector_store_id: str) -> List[Dict[str, Any]]:
        client = self.require_client()
        try:
            page = await client.vector_stores.files.list(vector_store_id=vector_store_id)
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to list vector store files: {e}")
        return [
            {
                "id": f.id,
                "status": getattr(f, "status", None),
                "createdAt": getattr(f, "created_at", None),
                "usageBytes": getattr(f, "usage_bytes", None),
            }
            for f in page.data
        ]

    async def remove_file_from_vector_store(self, vector_store_id: str, file_id: str) -> bool:
        client = self.require_client()
        try:
            await client.vector_stores.files.delete(file_id, vector_store_id=vector_store_id)
            return True
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to remove file from vector store: {e}")

    async def attach_vector_store(self, assistant_id: str, vector_store_id: str):
        """Привязывает vector store к ассистенту и включает file_search"""
        client = self.require_client()
        try:
            assistant = await client.beta.assistants.retrieve(assistant_id)
            tools = [{"type": t.type} for t in assistant.tools if t.type in SUPPORTED_TOOLS]
            if {"type": "file_search"} not in tools:
                tools.append({"type": "file_search"})
            return await client.beta.assistants.update(
                assistant_id,
                tools=tools,
                tool_resources={"file_search": {"vector_store_ids": [vector_store_id]}},
            )
        except OpenAIError as e:
            raise OpenAIServiceError(f"Failed to attach vector store: {e}")

    async def get_assistant_vector_store_ids(self, assistant_id: str) -> List[str]:
        assistant = await self.get_assistant(assistant_id)
        resources = getattr(assistant, "tool_resources", None)
        file_search = getattr(resources, "file_search", None) if resources else None
        return list(getattr(file_search, "vector_store_ids", None) or [])

    async def get_assistant_files(self, assistant_id: str) -> List[str]:
        """ID всех файлов во всех vector store ассистента"""
        file_ids: List[str] = []
        for store_id in await self.get_assistant_vector_store_ids(assistant_id):
            for f in await self.list_vector_store_files(store_id):
                file_ids.append(f["id"])
        return file_ids


def get_openai_service() -> OpenAIService:
    """Зависимость FastAPI: сервис с серверным ключом OpenAI"""
    return OpenAIService()
