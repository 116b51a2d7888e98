"""
Celery конфигурация для фоновой обработки базы знаний
"""
from celery import Celery
import os
import logging

logger = logging.getLogger(__name__)

# Получаем конфигурацию Redis
redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

logger.debug(f"Celery broker: {redis_url}")

celery_app = Celery(
    "airlab",
    broker=redis_url,
    backend=redis_url,
    include=[
        "airlab.features.knowledge.tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    broker_connection_retry_on_startup=True,
    broker_connection_retry=True,
    broker_connection_max_retries=10,
    broker_connection_retry_delay=1.0,

    # Обработка документов - отдельная очередь
    task_routes={
        "airlab.features.knowledge.tasks.process_google_doc_task": {"queue": "knowledge_queue"},
        "airlab.features.knowledge.tasks.process_knowledge_entry_task": {"queue": "knowledge_queue"},
    },

    # Настройки для повторных попыток
    task_default_retry_delay=60,
    task_max_retries=3,

    worker_prefetch_multiplier=1,
    task_acks_late=True,

    # Логирование
    worker_log_format='[%(asctime)s: %(levelname)s/%(processName)s] %(message)s',
    worker_task_log_format='[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s',
)
