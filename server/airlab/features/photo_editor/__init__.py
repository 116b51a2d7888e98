"""
AI фоторедактор на моделях изображений OpenAI.
"""

from .service import PhotoEditorService

__all__ = ["PhotoEditorService"]
