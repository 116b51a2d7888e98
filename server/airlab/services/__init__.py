"""
Внешние сервисы: OpenAI, Google Docs / Drive, AI-анализ документов.
"""
