#!/usr/bin/env python3
"""
Скрипт для запуска Celery worker обработки базы знаний
"""
from airlab.core.celery_app import celery_app

if __name__ == "__main__":
    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "--queues=knowledge_queue",  # Очередь обработки Google Docs и записей базы знаний
    ])
