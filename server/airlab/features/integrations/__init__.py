"""
Интеграции с мессенджерами: настройки каналов и входящие вебхуки.
"""

from .models import Integration
from .crud import IntegrationCRUD

__all__ = [
    "Integration",
    "IntegrationCRUD"
]
