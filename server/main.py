from contextlib import asynccontextmanager

from fastapi import FastAPI
from dotenv import load_dotenv
import logging
import os

# Загружаем переменные окружения из корневого .env файла
# В Docker переменные окружения уже установлены через docker-compose.yml
env_file = os.path.join(os.path.dirname(__file__), '..', '.env')
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    load_dotenv(override=False)

from airlab.core.config import settings
from airlab.core.middleware import setup_middleware, setup_exception_handlers
from airlab.core.database import init_db, SessionLocal
from airlab.features.system.routes import system_router
from airlab.features.auth.routes import auth_router
from airlab.features.user.routes import user_router, admin_user_router
from airlab.features.assistants.routes import assistants_router
from airlab.features.conversations.routes import conversations_router, chat_logs_router
from airlab.features.knowledge.routes import knowledge_router
from airlab.features.objects.routes import objects_api_router, objects_router
from airlab.features.integrations.routes import integrations_router
from airlab.features.integrations.webhooks import webhooks_router
from airlab.features.billing.routes import billing_router, admin_plans_router
from airlab.features.announcements.routes import announcements_router, admin_announcements_router
from airlab.features.widget.routes import widget_router
from airlab.features.photo_editor.routes import photo_editor_router

# Импортируем модели для создания таблиц
from airlab.features.user.models import User
from airlab.features.auth.models import UserSession
from airlab.features.assistants.models import Assistant
from airlab.features.conversations.models import Conversation, ChatLog
from airlab.features.knowledge.models import GoogleDocsDocument, KnowledgeBaseEntry
from airlab.features.integrations.models import Integration
from airlab.features.billing.models import Plan
from airlab.features.announcements.models import Announcement, AnnouncementRead

from airlab.features.auth.crud import AuthService
from airlab.features.billing.crud import PlanCRUD
from airlab.features.user.crud import UserCRUD

logger = logging.getLogger(__name__)


def seed_defaults():
    """Администратор и тарифы по умолчанию"""
    db = SessionLocal()
    try:
        UserCRUD(db).init_admin()
        created = PlanCRUD.seed_default_plans(db)
        if created:
            logger.info(f"✅ Созданы тарифы по умолчанию: {created}")
        AuthService(db).cleanup_expired_sessions()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    seed_defaults()
    yield


# Создаем FastAPI приложение с настройками из config
app = FastAPI(**settings.get_app_config(), lifespan=lifespan)

# Инициализируем базу данных ПОСЛЕ импорта всех моделей
init_db()

# Настраиваем middleware
setup_middleware(app)

# Настраиваем обработчики исключений
setup_exception_handlers(app)

# Подключаем роутеры
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(admin_user_router)
app.include_router(assistants_router)
app.include_router(conversations_router)
app.include_router(chat_logs_router)
app.include_router(knowledge_router)
app.include_router(objects_api_router)
app.include_router(objects_router)
app.include_router(integrations_router)
app.include_router(webhooks_router)
app.include_router(billing_router)
app.include_router(admin_plans_router)
app.include_router(announcements_router)
app.include_router(admin_announcements_router)
app.include_router(widget_router)
app.include_router(photo_editor_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
