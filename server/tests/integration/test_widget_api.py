"""
Интеграционные тесты конструктора виджета и публичного чата
"""

import pytest
from unittest.mock import AsyncMock
from urllib.parse import quote

from airlab.features.conversations.crud import ConversationCRUD
from airlab.services.openai_service import OpenAIServiceError


@pytest.fixture
def widget_assistant(db_session, test_assistant):
    test_assistant.widget_enabled = True
    db_session.commit()
    return test_assistant


class TestWidgetDesigner:

    def test_default_config(self, client, test_user, test_assistant, auth_headers):
        response = client.get(f"/api/assistants/{test_assistant.id}/widget", headers=auth_headers(test_user))

        assert response.status_code == 200
        data = response.json()
        assert data["primaryColor"] == "#10B981"
        assert data["position"] == "bottom-right"
        assert data["welcomeMessage"] == "Привет! Как дела? Чем могу помочь?"

    def test_generate_html(self, client, test_user, test_assistant, auth_headers):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/widget",
            json={"config": {"primaryColor": "#3B82F6", "apiBaseUrl": "https://bot.example.com"}},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert "#3B82F6" in data["html"]
        assert "https://bot.example.com/api/widget/" in data["html"]
        assert data["config"]["primaryColor"] == "#3B82F6"

    def test_download(self, client, test_user, test_assistant, auth_headers):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/widget?download=true",
            json={},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        expected = quote("chat-widget-Support Bot.html")
        assert response.headers["content-disposition"] == (
            f'attachment; filename="chat-widget-Support Bot.html"; filename*=UTF-8\'\'{expected}'
        )
        assert response.text.startswith("<!DOCTYPE html>")

    def test_invalid_color(self, client, test_user, test_assistant, auth_headers):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/widget",
            json={"config": {"primaryColor": "red;}</style><script>"}},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400

    def test_foreign_assistant(self, client, other_user, test_assistant, auth_headers):
        response = client.get(f"/api/assistants/{test_assistant.id}/widget", headers=auth_headers(other_user))
        assert response.status_code == 403

    def test_generate_opens_public_chat(self, client, db_session, test_user, test_assistant, auth_headers, mock_openai):
        chat_url = f"/api/widget/{test_assistant.id}/chat"
        payload = {"message": "Привет", "sessionId": "v"}
        assert client.post(chat_url, json=payload).status_code == 404

        client.post(f"/api/assistants/{test_assistant.id}/widget", json={}, headers=auth_headers(test_user))

        db_session.refresh(test_assistant)
        assert test_assistant.widget_enabled is True
        assert client.post(chat_url, json=payload).status_code == 200

    def test_disable_closes_public_chat(self, client, test_user, widget_assistant, auth_headers, mock_openai):
        response = client.delete(f"/api/assistants/{widget_assistant.id}/widget", headers=auth_headers(test_user))

        assert response.status_code == 200
        chat = client.post(f"/api/widget/{widget_assistant.id}/chat", json={"message": "Привет", "sessionId": "v"})
        assert chat.status_code == 404
        mock_openai.run_assistant.assert_not_awaited()

    def test_disable_foreign_widget(self, client, other_user, widget_assistant, auth_headers):
        response = client.delete(f"/api/assistants/{widget_assistant.id}/widget", headers=auth_headers(other_user))
        assert response.status_code == 403


class TestWidgetChat:

    def test_public_chat(self, client, db_session, widget_assistant, mock_openai):
        response = client.post(
            f"/api/widget/{widget_assistant.id}/chat", json={"message": "Здравствуйте", "sessionId": "visitor-1"}
        )

        assert response.status_code == 200
        assert response.json()["reply"] == "Ответ ассистента"
        assert response.json()["messageId"].endswith("_assistant")
        conversation = ConversationCRUD.get_by_title(db_session, widget_assistant.id, "widget:visitor-1")
        assert conversation.user_id == widget_assistant.user_id

    def test_inactive_assistant(self, client, db_session, widget_assistant):
        widget_assistant.is_active = False
        db_session.commit()

        response = client.post(f"/api/widget/{widget_assistant.id}/chat", json={"message": "Привет", "sessionId": "v"})

        assert response.status_code == 404

    def test_empty_message(self, client, widget_assistant):
        response = client.post(f"/api/widget/{widget_assistant.id}/chat", json={"message": "", "sessionId": "v"})
        assert response.status_code == 400

    def test_openai_error(self, client, widget_assistant, mock_openai):
        mock_openai.run_assistant = AsyncMock(side_effect=OpenAIServiceError("down"))

        response = client.post(f"/api/widget/{widget_assistant.id}/chat", json={"message": "Привет", "sessionId": "v"})

        assert response.status_code == 502
        assert response.json() == {"error": "Assistant is unavailable"}
