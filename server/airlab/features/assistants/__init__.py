"""
Ассистенты OpenAI: создание, настройка, файлы, экспорт и импорт конфигурации.
"""

from .models import Assistant
from .crud import AssistantCRUD

__all__ = [
    "Assistant",
    "AssistantCRUD"
]
