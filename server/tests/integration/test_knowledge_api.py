"""
Интеграционные тесты Google Docs и базы знаний
"""

import pytest
from unittest.mock import AsyncMock, Mock

from main import app
from airlab.features.assistants.crud import AssistantCRUD
from airlab.features.knowledge.crud import GoogleDocsCRUD, KnowledgeBaseCRUD
from airlab.features.knowledge.routes import get_google_docs_service
from airlab.services.openai_service import OpenAIServiceError

DOC_URL = "https://docs.google.com/document/d/1AbCdEfGhIjKlMnOpQrStUvWxYz/edit?usp=sharing"


@pytest.fixture
def docs_service():
    docs = Mock()
    docs.get_doc_info = AsyncMock(return_value={"title": "Прайс-лист"})
    app.dependency_overrides[get_google_docs_service] = lambda: docs
    yield docs
    app.dependency_overrides.pop(get_google_docs_service, None)


class TestGoogleDocsImport:

    def test_import_enqueues_processing(
        self, client, db_session, test_user, test_assistant, auth_headers, docs_service, mock_tasks
    ):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/google-drive",
            json={"documentUrl": DOC_URL},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["title"] == "Прайс-лист"
        docs_service.get_doc_info.assert_awaited_once_with("1AbCdEfGhIjKlMnOpQrStUvWxYz")
        mock_tasks["google_doc"].assert_called_once_with(data["documentId"])

        document = GoogleDocsCRUD.get_by_id(db_session, data["documentId"])
        assert document.status == "processing"
        assert document.url == DOC_URL

    def test_missing_url(self, client, test_user, test_assistant, auth_headers, docs_service):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/google-drive", json={}, headers=auth_headers(test_user)
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Document URL is required"}

    def test_invalid_url(self, client, test_user, test_assistant, auth_headers, docs_service):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/google-drive",
            json={"documentUrl": "https://example.com/doc"},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid Google Docs URL"}
        docs_service.get_doc_info.assert_not_awaited()

    def test_inaccessible_document(self, client, test_user, test_assistant, auth_headers, docs_service, mock_tasks):
        docs_service.get_doc_info = AsyncMock(return_value=None)

        response = client.post(
            f"/api/assistants/{test_assistant.id}/google-drive",
            json={"documentUrl": DOC_URL},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 404
        mock_tasks["google_doc"].assert_not_called()

    def test_other_users_assistant(self, client, other_user, test_assistant, auth_headers, docs_service):
        response = client.post(
            f"/api/assistants/{test_assistant.id}/google-drive",
            json={"documentUrl": DOC_URL},
            headers=auth_headers(other_user),
        )
        assert response.status_code == 403

    def test_celery_unavailable_falls_back(
        self, client, test_user, test_assistant, auth_headers, docs_service, mock_tasks, monkeypatch
    ):
        mock_tasks["google_doc"].side_effect = ConnectionError("redis down")
        fallback = AsyncMock()
        monkeypatch.setattr("airlab.features.knowledge.routes._run_in_process", fallback)

        response = client.post(
            f"/api/assistants/{test_assistant.id}/google-drive",
            json={"documentUrl": DOC_URL},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        fallback.assert_awaited_once_with("google_doc", response.json()["documentId"])

    def test_list_and_delete(self, client, db_session, test_user, test_assistant, auth_headers):
        document = GoogleDocsCRUD.create(db_session, test_user.id, test_assistant.id, "Док", DOC_URL)
        headers = auth_headers(test_user)

        listed = client.get(f"/api/assistants/{test_assistant.id}/google-drive", headers=headers)
        assert [d["id"] for d in listed.json()] == [document.id]
        assert listed.json()[0]["status"] == "processing"

        all_docs = client.get("/api/google-docs/all", headers=headers)
        assert len(all_docs.json()) == 1

        deleted = client.delete(f"/api/google-drive/{document.id}", headers=headers)
        assert deleted.status_code == 200
        db_session.expire_all()
        assert GoogleDocsCRUD.get_by_id(db_session, document.id) is None

    def test_delete_foreign_document(self, client, db_session, test_user, other_user, test_assistant, auth_headers):
        document = GoogleDocsCRUD.create(db_session, test_user.id, test_assistant.id, "Док", DOC_URL)
        response = client.delete(f"/api/google-drive/{document.id}", headers=auth_headers(other_user))
        assert response.status_code == 404


class TestKnowledgeBase:

    def test_create_text_entry(self, client, test_user, test_assistant, auth_headers, mock_tasks):
        response = client.post(
            "/api/knowledge-base",
            json={"assistantId": test_assistant.id, "title": "FAQ", "content": "Работаем с 9 до 18"},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "processing"
        assert data["sourceType"] == "text"
        assert data["metadata"] == {}
        mock_tasks["text"].assert_called_once_with(data["id"])

    def test_list_entries(self, client, db_session, test_user, test_assistant, auth_headers):
        KnowledgeBaseCRUD.create(
            db_session, test_user.id, test_assistant.id, "Документ", source_type="google_doc",
            summary="Кратко", key_points=["a"], topics=["t"], meta={"wordCount": 10},
        )

        response = client.get(f"/api/knowledge-base/assistant/{test_assistant.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        entry = response.json()[0]
        assert entry["keyPoints"] == ["a"]
        assert entry["metadata"] == {"wordCount": 10}

    def test_delete_entry_removes_file(self, client, db_session, test_user, test_assistant, auth_headers, mock_openai):
        test_assistant.vector_store_id = "vs_1"
        db_session.commit()
        entry = KnowledgeBaseCRUD.create(
            db_session, test_user.id, test_assistant.id, "Файл", source_type="file", openai_file_id="file_1"
        )

        response = client.delete(f"/api/knowledge-base/{entry.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        mock_openai.remove_file_from_vector_store.assert_awaited_once_with("vs_1", "file_1")

    def test_vector_store_files(self, client, db_session, test_user, test_assistant, auth_headers, mock_openai):
        headers = auth_headers(test_user)
        empty = client.get(f"/api/assistants/{test_assistant.id}/vector-store", headers=headers)
        assert empty.json() == {"vectorStoreId": None, "files": []}

        test_assistant.vector_store_id = "vs_1"
        db_session.commit()
        mock_openai.list_vector_store_files = AsyncMock(return_value=[{"id": "file_1", "status": "completed"}])

        response = client.get(f"/api/assistants/{test_assistant.id}/vector-store", headers=headers)
        assert response.json()["files"] == [{"id": "file_1", "status": "completed"}]

    def test_delete_entry_clears_document_file(self, client, db_session, test_user, test_assistant, auth_headers, mock_openai):
        test_assistant.vector_store_id = "vs_1"
        db_session.commit()
        document = GoogleDocsCRUD.create(db_session, test_user.id, test_assistant.id, "Прайс", DOC_URL)
        GoogleDocsCRUD.update(db_session, document, {"status": "completed", "openai_file_id": "file_1"})
        entry = KnowledgeBaseCRUD.create(
            db_session, test_user.id, test_assistant.id, "Прайс", source_type="google_doc",
            source_id=document.id, openai_file_id="file_1", vector_store_id="vs_1",
        )

        response = client.delete(f"/api/knowledge-base/{entry.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        db_session.expire_all()
        assert KnowledgeBaseCRUD.get_by_id(db_session, entry.id) is None
        assert GoogleDocsCRUD.get_by_id(db_session, document.id).openai_file_id is None

    def test_delete_entry_keeps_reference_when_openai_fails(
        self, client, db_session, test_user, test_assistant, auth_headers, mock_openai
    ):
        test_assistant.vector_store_id = "vs_1"
        db_session.commit()
        document = GoogleDocsCRUD.create(db_session, test_user.id, test_assistant.id, "Прайс", DOC_URL)
        GoogleDocsCRUD.update(db_session, document, {"openai_file_id": "file_1"})
        entry = KnowledgeBaseCRUD.create(
            db_session, test_user.id, test_assistant.id, "Прайс", source_type="google_doc",
            source_id=document.id, openai_file_id="file_1",
        )
        mock_openai.remove_file_from_vector_store = AsyncMock(side_effect=OpenAIServiceError("timeout"))

        response = client.delete(f"/api/knowledge-base/{entry.id}", headers=auth_headers(test_user))

        assert response.status_code == 200
        db_session.expire_all()
        # Файл остался в vector store, документ должен помнить его id
        assert GoogleDocsCRUD.get_by_id(db_session, document.id).openai_file_id == "file_1"

    def test_remove_vector_store_file_clears_references(
        self, client, db_session, test_user, test_assistant, auth_headers, mock_openai
    ):
        test_assistant.vector_store_id = "vs_1"
        test_assistant.files = [{"id": "file_1", "name": "price.pdf"}, {"id": "file_2", "name": "faq.pdf"}]
        db_session.commit()
        document = GoogleDocsCRUD.create(db_session, test_user.id, test_assistant.id, "Прайс", DOC_URL)
        GoogleDocsCRUD.update(db_session, document, {"status": "completed", "openai_file_id": "file_1"})
        entry = KnowledgeBaseCRUD.create(
            db_session, test_user.id, test_assistant.id, "price.pdf", source_type="file",
            openai_file_id="file_1", vector_store_id="vs_1",
        )
        other = KnowledgeBaseCRUD.create(
            db_session, test_user.id, test_assistant.id, "faq.pdf", source_type="file", openai_file_id="file_2",
        )

        response = client.delete(
            f"/api/assistants/{test_assistant.id}/vector-store/files/file_1", headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        mock_openai.remove_file_from_vector_store.assert_awaited_once_with("vs_1", "file_1")
        db_session.expire_all()
        assert GoogleDocsCRUD.get_by_id(db_session, document.id).openai_file_id is None
        cleared = KnowledgeBaseCRUD.get_by_id(db_session, entry.id)
        assert cleared.openai_file_id is None
        assert cleared.vector_store_id is None
        assert KnowledgeBaseCRUD.get_by_id(db_session, other.id).openai_file_id == "file_2"
        assert [f["id"] for f in AssistantCRUD.get_by_id(db_session, test_assistant.id).files] == ["file_2"]
