import os
from typing import List, Optional
import logging


class Settings:
    """
    Настройки приложения
    """

    # === ОСНОВНЫЕ НАСТРОЙКИ ===
    APP_NAME: str = "Air Lab Assistant Builder API"
    APP_DESCRIPTION: str = "API для создания и развёртывания OpenAI ассистентов"
    APP_VERSION: str = "1.0.0"

    # === НАСТРОЙКИ СЕРВЕРА ===
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "")

    # === НАСТРОЙКИ БАЗЫ ДАННЫХ ===
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./airlab.db")

    # === НАСТРОЙКИ CORS ===
    CORS_ORIGINS: List[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    CORS_ALLOW_CREDENTIALS: bool = (
        os.getenv("CORS_ALLOW_CREDENTIALS", "True").lower() == "true"
    )
    CORS_ALLOW_METHODS: List[str] = os.getenv(
        "CORS_ALLOW_METHODS", "*"
    ).split(",")
    CORS_ALLOW_HEADERS: List[str] = os.getenv(
        "CORS_ALLOW_HEADERS", "*"
    ).split(",")

    # === НАСТРОЙКИ БЕЗОПАСНОСТИ ===
    TRUSTED_HOSTS: List[str] = os.getenv("TRUSTED_HOSTS", "*").split(",")
    SESSION_TTL_DAYS: int = int(os.getenv("SESSION_TTL_DAYS", "7"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@admin.ru")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "111111")

    # === НАСТРОЙКИ OPENAI ===
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    DEFAULT_MODEL: str = os.getenv("DEFAULT_MODEL", "gpt-4o")
    SUMMARY_MODEL: str = os.getenv("SUMMARY_MODEL", "gpt-3.5-turbo")
    RUN_POLL_MAX_ATTEMPTS: int = int(os.getenv("RUN_POLL_MAX_ATTEMPTS", "30"))
    RUN_POLL_INTERVAL: float = float(os.getenv("RUN_POLL_INTERVAL", "1.0"))

    # === НАСТРОЙКИ GOOGLE ===
    GOOGLE_DOCS_TIMEOUT: float = float(os.getenv("GOOGLE_DOCS_TIMEOUT", "30"))
    GOOGLE_SERVICE_ACCOUNT_FILE: Optional[str] = os.getenv(
        "GOOGLE_SERVICE_ACCOUNT_FILE"
    )

    # === ХРАНИЛИЩЕ ФАЙЛОВ ===
    PRIVATE_OBJECT_DIR: str = os.getenv("PRIVATE_OBJECT_DIR", "./storage")
    MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(20 * 1024 * 1024)))

    # === ФОНОВЫЕ ЗАДАЧИ ===
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # === НАСТРОЙКИ ЛОГИРОВАНИЯ ===
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def setup_logging(self):
        """
        Настройка логирования приложения
        """
        logging.basicConfig(
            level=getattr(logging, self.LOG_LEVEL.upper()),
            format=self.LOG_FORMAT
        )

        if self.DEBUG:
            logging.getLogger("uvicorn").setLevel(logging.DEBUG)
            logging.getLogger("uvicorn.access").setLevel(logging.DEBUG)

        # httpx и openai слишком болтливы на INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)

    def get_cors_config(self) -> dict:
        """
        Получить конфигурацию CORS
        """
        return {
            "allow_origins": self.CORS_ORIGINS,
            "allow_credentials": self.CORS_ALLOW_CREDENTIALS,
            "allow_methods": self.CORS_ALLOW_METHODS,
            "allow_headers": self.CORS_ALLOW_HEADERS,
        }

    def get_trusted_hosts_config(self) -> dict:
        """
        Получить конфигурацию доверенных хостов
        """
        return {
            "allowed_hosts": self.TRUSTED_HOSTS
        }

    def get_app_config(self) -> dict:
        """
        Получить конфигурацию FastAPI приложения
        """
        return {
            "title": self.APP_NAME,
            "description": self.APP_DESCRIPTION,
            "version": self.APP_VERSION,
            "debug": self.DEBUG
        }

    @property
    def uploads_dir(self) -> str:
        return os.path.join(self.PRIVATE_OBJECT_DIR, "uploads")


# Создаем глобальный экземпляр настроек
settings = Settings()

# Настраиваем логирование при импорте модуля
settings.setup_logging()
