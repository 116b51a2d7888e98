"""
Интеграционные тесты диалогов и журнала сообщений
"""

import pytest
from unittest.mock import AsyncMock

from airlab.features.conversations.crud import ConversationCRUD
from airlab.services.openai_service import OpenAIServiceError, OpenAINotConfiguredError


@pytest.fixture
def conversation(db_session, test_user, test_assistant):
    return ConversationCRUD.create(db_session, test_user.id, test_assistant.id, title="Поддержка")


class TestConversationsAPI:

    def test_create(self, client, test_user, test_assistant, auth_headers):
        response = client.post(
            "/api/conversations",
            json={"assistantId": test_assistant.id, "title": "Новый"},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Новый"
        assert data["messages"] == []
        assert data["openaiThreadId"] is None

    def test_create_with_foreign_assistant(self, client, other_user, test_assistant, auth_headers):
        response = client.post(
            "/api/conversations", json={"assistantId": test_assistant.id}, headers=auth_headers(other_user)
        )
        assert response.status_code == 403

    def test_lists(self, client, test_user, test_assistant, conversation, auth_headers):
        headers = auth_headers(test_user)

        by_user = client.get(f"/api/conversations/user/{test_user.id}", headers=headers)
        by_assistant = client.get(f"/api/conversations/assistant/{test_assistant.id}", headers=headers)

        assert [c["id"] for c in by_user.json()] == [conversation.id]
        assert [c["id"] for c in by_assistant.json()] == [conversation.id]

    def test_foreign_conversation(self, client, other_user, conversation, auth_headers):
        response = client.get(f"/api/conversations/{conversation.id}", headers=auth_headers(other_user))
        assert response.status_code == 403

    def test_missing_conversation(self, client, test_user, auth_headers):
        response = client.get("/api/conversations/missing", headers=auth_headers(test_user))
        assert response.status_code == 404

    def test_delete(self, client, db_session, test_user, conversation, auth_headers):
        response = client.delete(f"/api/conversations/{conversation.id}", headers=auth_headers(test_user))
        assert response.status_code == 200
        db_session.expire_all()
        assert ConversationCRUD.get_by_id(db_session, conversation.id) is None


class TestSendMessage:

    def test_send_message(self, client, test_user, conversation, auth_headers, mock_openai):
        headers = {**auth_headers(test_user), "User-Agent": "support-dashboard/1.0"}

        response = client.post(
            f"/api/conversations/{conversation.id}/messages", json={"message": "Где мой заказ?"}, headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["userMessage"]["content"] == "Где мой заказ?"
        assert data["assistantMessage"]["role"] == "assistant"
        assert data["assistantMessage"]["content"] == "Ответ ассистента"

        stored = client.get(f"/api/conversations/{conversation.id}", headers=headers).json()
        assert stored["openaiThreadId"] == "thread_test123"
        assert [m["role"] for m in stored["messages"]] == ["user", "assistant"]

        logs = client.get(f"/api/chat-logs/conversation/{conversation.id}", headers=headers).json()
        assert len(logs) == 2
        assert {log["action"] for log in logs} == {"message_sent", "message_received"}
        assert logs[0]["sessionId"].startswith("session_")
        assert logs[0]["sessionId"] == logs[1]["sessionId"]
        assert logs[0]["metadata"] == {
            "userAgent": "support-dashboard/1.0",
            "ipAddress": "testclient",
            "model": "gpt-4o",
            "temperature": 0.7,
        }

    def test_empty_message(self, client, test_user, conversation, auth_headers, mock_openai):
        response = client.post(
            f"/api/conversations/{conversation.id}/messages", json={"message": "   "}, headers=auth_headers(test_user)
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        mock_openai.run_assistant.assert_not_awaited()

    def test_openai_not_configured(self, client, test_user, conversation, auth_headers, mock_openai):
        mock_openai.create_thread = AsyncMock(side_effect=OpenAINotConfiguredError())

        response = client.post(
            f"/api/conversations/{conversation.id}/messages", json={"message": "Привет"}, headers=auth_headers(test_user)
        )

        assert response.status_code == 500

    def test_openai_error(self, client, test_user, conversation, auth_headers, mock_openai):
        mock_openai.run_assistant = AsyncMock(side_effect=OpenAIServiceError("Run failed with status: failed"))

        response = client.post(
            f"/api/conversations/{conversation.id}/messages", json={"message": "Привет"}, headers=auth_headers(test_user)
        )

        assert response.status_code == 502
        assert response.json()["error"].startswith("Failed to get response")


class TestChatLogsAPI:

    def test_create_and_list(self, client, test_user, conversation, auth_headers):
        headers = auth_headers(test_user)

        response = client.post("/api/chat-logs", json={
            "conversationId": conversation.id,
            "action": "conversation_opened",
            "sessionId": "web-1",
            "metadata": {"source": "dashboard"},
        }, headers=headers)

        assert response.status_code == 201
        assert response.json()["metadata"] == {"source": "dashboard"}
        assert response.json()["userId"] == test_user.id

        logs = client.get(f"/api/chat-logs/user/{test_user.id}", headers=headers).json()
        assert [log["action"] for log in logs] == ["conversation_opened"]

    def test_log_for_foreign_conversation(self, client, other_user, conversation, auth_headers):
        response = client.post(
            "/api/chat-logs",
            json={"conversationId": conversation.id, "action": "x"},
            headers=auth_headers(other_user),
        )
        assert response.status_code == 403

    def test_foreign_user_logs(self, client, test_user, other_user, auth_headers):
        response = client.get(f"/api/chat-logs/user/{test_user.id}", headers=auth_headers(other_user))
        assert response.status_code == 403
