"""
База знаний ассистентов.

Этот модуль содержит:
- models: Google Docs документы и записи базы знаний
- crud: операции с БД
- pipeline: получение текста, AI-анализ, загрузка в vector store
- tasks: Celery задачи фоновой обработки
- routes: /api/assistants/{id}/google-drive, /api/knowledge-base, vector store
"""

from .models import GoogleDocsDocument, KnowledgeBaseEntry

__all__ = [
    "GoogleDocsDocument",
    "KnowledgeBaseEntry"
]
