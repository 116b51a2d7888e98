"""
Диалоги с ассистентами и журнал сообщений.
"""

from .models import Conversation, ChatLog
from .crud import ConversationCRUD, ChatLogCRUD

__all__ = [
    "Conversation",
    "ChatLog",
    "ConversationCRUD",
    "ChatLogCRUD"
]
