"""
Тесты сервиса OpenAI: сборка параметров и опрос запусков
"""

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from openai import OpenAIError

from airlab.services.openai_service import (
    OpenAIService, OpenAIServiceError, OpenAINotConfiguredError, RunFailedError, RunTimeoutError,
    EMPTY_REPLY, build_tools, build_instructions, extract_message_text
)


def text_message(role, text):
    block = SimpleNamespace(type="text", text=SimpleNamespace(value=text))
    return SimpleNamespace(role=role, content=[block])


def make_client(statuses, messages=None):
    """Клиент, у которого run проходит через заданные статусы"""
    client = Mock()
    client.beta.threads.runs.create = AsyncMock(return_value=SimpleNamespace(id="run_1", status=statuses[0]))
    client.beta.threads.runs.retrieve = AsyncMock(
        side_effect=[SimpleNamespace(id="run_1", status=s, last_error=None) for s in statuses[1:]]
    )
    client.beta.threads.messages.list = AsyncMock(return_value=SimpleNamespace(data=messages or []))
    return client


def make_service(client) -> OpenAIService:
    service = OpenAIService(client=client)
    service.poll_interval = 0
    return service


class TestHelpers:

    def test_build_tools_keeps_enabled_supported(self):
        tools = [
            {"type": "code_interpreter", "enabled": False},
            {"type": "file_search", "enabled": True},
            {"type": "file_search"},
            {"type": "function", "enabled": True},
        ]
        assert build_tools(tools) == [{"type": "file_search"}]
        assert build_tools(None) == []

    def test_build_instructions(self):
        assert build_instructions("Отвечай кратко", "Ты помощник") == "Ты помощник\n\nОтвечай кратко"
        assert build_instructions("Только инструкции") == "Только инструкции"
        assert build_instructions(None, "  ") == ""

    def test_extract_message_text(self):
        message = text_message("assistant", "Привет")
        message.content.append(SimpleNamespace(type="image_file"))
        assert extract_message_text(message) == "Привет"


class TestRunPolling:
    """Опрос запуска останавливается на терминальном статусе или по лимиту"""

    @pytest.mark.asyncio
    async def test_completed_run_returns_last_assistant_message(self):
        client = make_client(
            ["queued", "in_progress", "completed"],
            messages=[text_message("assistant", "Готово"), text_message("user", "Вопрос")],
        )
        reply = await make_service(client).run_assistant("thread_1", "asst_1")

        assert reply == "Готово"
        assert client.beta.threads.runs.retrieve.await_count == 2
        client.beta.threads.runs.retrieve.assert_awaited_with("run_1", thread_id="thread_1")

    @pytest.mark.asyncio
    async def test_no_assistant_message_returns_fallback(self):
        client = make_client(["completed"], messages=[text_message("user", "Вопрос")])
        reply = await make_service(client).run_assistant("thread_1", "asst_1")
        assert reply == EMPTY_REPLY
        client.beta.threads.runs.retrieve.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["failed", "cancelled", "expired"])
    async def test_terminal_failure(self, status):
        client = make_client(["queued", status])
        with pytest.raises(RunFailedError) as exc_info:
            await make_service(client).run_assistant("thread_1", "asst_1")
        assert exc_info.value.status == status
        client.beta.threads.messages.list.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_after_max_attempts(self):
        client = make_client(["queued"] + ["in_progress"] * 5)
        service = make_service(client)
        service.poll_max_attempts = 3

        with pytest.raises(RunTimeoutError) as exc_info:
            await service.run_assistant("thread_1", "asst_1")

        assert exc_info.value.attempts == 3
        assert client.beta.threads.runs.retrieve.await_count == 3

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self):
        client = Mock()
        client.beta.threads.runs.create = AsyncMock(side_effect=OpenAIError("boom"))
        with pytest.raises(OpenAIServiceError):
            await make_service(client).run_assistant("thread_1", "asst_1")


class TestAssistants:

    @pytest.mark.asyncio
    async def test_not_configured(self):
        service = OpenAIService(api_key="")
        service.client = None
        assert service.is_configured is False
        with pytest.raises(OpenAINotConfiguredError):
            await service.create_assistant(name="Bot")

    @pytest.mark.asyncio
    async def test_create_assistant_params(self):
        client = Mock()
        client.beta.assistants.create = AsyncMock(return_value=SimpleNamespace(id="asst_1"))
        service = make_service(client)

        assistant = await service.create_assistant(
            name="Bot",
            instructions="Помогай",
            model="gpt-4o",
            tools=[{"type": "file_search", "enabled": True}],
            system_prompt="Ты бот",
            temperature=0.5,
        )

        assert assistant.id == "asst_1"
        client.beta.assistants.create.assert_awaited_once_with(
            name="Bot",
            instructions="Ты бот\n\nПомогай",
            model="gpt-4o",
            tools=[{"type": "file_search"}],
            temperature=0.5,
        )

    @pytest.mark.asyncio
    async def test_update_skips_missing_fields(self):
        client = Mock()
        client.beta.assistants.update = AsyncMock(return_value=SimpleNamespace(id="asst_1"))
        await make_service(client).update_assistant("asst_1", name="New", model=None)
        client.beta.assistants.update.assert_awaited_once_with("asst_1", name="New")

    @pytest.mark.asyncio
    async def test_assistant_files_from_vector_stores(self):
        client = Mock()
        client.beta.assistants.retrieve = AsyncMock(return_value=SimpleNamespace(
            tool_resources=SimpleNamespace(file_search=SimpleNamespace(vector_store_ids=["vs_1"]))
        ))
        client.vector_stores.files.list = AsyncMock(return_value=SimpleNamespace(
            data=[SimpleNamespace(id="file_1", status="completed"), SimpleNamespace(id="file_2", status="completed")]
        ))
        assert await make_service(client).get_assistant_files("asst_1") == ["file_1", "file_2"]
