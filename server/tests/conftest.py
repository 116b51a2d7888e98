import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from unittest.mock import Mock, AsyncMock, patch

# Окружение для тестов задаём до импорта приложения
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["OPENAI_API_KEY"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"

from airlab.core.database import Base, get_db
from airlab.services.openai_service import OpenAIService, get_openai_service
from airlab.features.auth.crud import AuthService
from airlab.features.assistants.crud import AssistantCRUD
from airlab.features.integrations.channels import ChannelClient, SendResult, get_channel_client
from airlab.features.knowledge.tasks import process_google_doc_task, process_knowledge_entry_task
from airlab.features.objects.routes import get_object_storage
from airlab.features.objects.storage import ObjectStorageService
from airlab.features.user.crud import UserCRUD
from airlab.features.user.schemas import UserCreate
from main import app

# Настройка тестовой базы данных
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Переопределяем зависимость get_db для тестов"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


# Подменяем зависимость
app.dependency_overrides[get_db] = override_get_db


def make_openai_mock(configured: bool = True) -> Mock:
    """Мок OpenAIService с асинхронными методами"""
    service = Mock(spec=OpenAIService)
    service.is_configured = configured
    service.create_assistant = AsyncMock(return_value=Mock(id="asst_test123"))
    service.update_assistant = AsyncMock()
    service.delete_assistant = AsyncMock(return_value=True)
    service.get_assistant_files = AsyncMock(return_value=[])
    service.create_thread = AsyncMock(return_value="thread_test123")
    service.send_message = AsyncMock()
    service.add_document_context = AsyncMock()
    service.run_assistant = AsyncMock(return_value="Ответ ассистента")
    service.chat_completion = AsyncMock(return_value="Ответ модели")
    service.upload_file = AsyncMock(return_value="file_test123")
    service.delete_file = AsyncMock(return_value=True)
    service.create_vector_store = AsyncMock(return_value="vs_test123")
    service.delete_vector_store = AsyncMock(return_value=True)
    service.add_file_to_vector_store = AsyncMock()
    service.attach_vector_store = AsyncMock()
    service.list_vector_store_files = AsyncMock(return_value=[])
    service.remove_file_from_vector_store = AsyncMock(return_value=True)
    return service


@pytest.fixture(scope="function")
def db_session():
    """Фикстура для создания тестовой сессии БД"""
    # Очищаем и создаем таблицы заново
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()

    yield session

    # Очищаем после теста
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mock_openai():
    """OpenAI подменяется для всех маршрутов"""
    service = make_openai_mock()
    app.dependency_overrides[get_openai_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_openai_service, None)


@pytest.fixture
def mock_channels():
    channels = Mock(spec=ChannelClient)
    channels.send_telegram = AsyncMock(return_value=SendResult(True, "telegram"))
    channels.send_vk = AsyncMock(return_value=SendResult(True, "vk"))
    channels.send_whatsapp = AsyncMock(return_value=SendResult(True, "whatsapp"))
    app.dependency_overrides[get_channel_client] = lambda: channels
    yield channels
    app.dependency_overrides.pop(get_channel_client, None)


@pytest.fixture
def object_storage(tmp_path):
    storage = ObjectStorageService(root_dir=str(tmp_path / "storage"), public_base_url="http://testserver")
    app.dependency_overrides[get_object_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_object_storage, None)


@pytest.fixture(autouse=True)
def mock_tasks():
    """Celery в тестах не вызывается"""
    with patch.object(process_google_doc_task, "delay") as doc_delay, \
            patch.object(process_knowledge_entry_task, "delay") as entry_delay:
        yield {"google_doc": doc_delay, "text": entry_delay}


@pytest.fixture(scope="function")
def client(db_session, mock_openai):
    """Фикстура для тестового клиента FastAPI"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_session):
    def _make_user(username: str = "testuser", role: str = "user", plan: str = "free", **kwargs):
        return UserCRUD(db_session).create_user(UserCreate(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            password=kwargs.pop("password", "secret123"),
            role=role,
            plan=plan,
            **kwargs
        ))
    return _make_user


@pytest.fixture
def test_user(make_user):
    return make_user("alice")


@pytest.fixture
def other_user(make_user):
    return make_user("bob")


@pytest.fixture
def admin_user(make_user):
    return make_user("root", role="admin", plan="premium")


@pytest.fixture
def auth_headers(db_session):
    """Заголовки авторизации для пользователя"""
    def _headers(user):
        session = AuthService(db_session).create_session(user)
        return {"Authorization": f"Bearer {session.token}"}
    return _headers


@pytest.fixture
def test_assistant(db_session, test_user):
    return AssistantCRUD.create(db_session, test_user.id, {
        "name": "Support Bot",
        "instructions": "Отвечай вежливо",
        "openai_assistant_id": "asst_existing",
        "tools": [],
        "files": [],
    })
