"""
Хранилище загружаемых файлов (/api/objects/upload, /objects/*).
"""

from .storage import ObjectStorageService, ObjectNotFoundError

__all__ = [
    "ObjectStorageService",
    "ObjectNotFoundError"
]
