from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse
import logging
import uuid

from ...core.config import settings
from ..auth.dependencies import get_current_user
from ..user.models import User
from .storage import ObjectStorageService, ObjectNotFoundError, InvalidObjectPathError, UploadOwnerError

logger = logging.getLogger(__name__)

objects_api_router = APIRouter(prefix="/api/objects", tags=["objects"])
objects_router = APIRouter(prefix="/objects", tags=["objects"])


def get_object_storage() -> ObjectStorageService:
    return ObjectStorageService()


@objects_api_router.post("/upload")
async def request_upload(
    current_user: User = Depends(get_current_user),
    storage: ObjectStorageService = Depends(get_object_storage)
):
    """Выдаёт URL для загрузки файла методом PUT"""
    return storage.create_upload(owner_id=current_user.id)


@objects_api_router.put("/upload/{object_id}")
async def upload_object(
    object_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    storage: ObjectStorageService = Depends(get_object_storage)
):
    """Загрузка файла по адресу, выданному POST /upload"""
    try:
        uuid.UUID(object_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid object id")

    body = await request.body()
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    if len(body) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File is too large"
        )
    try:
        object_path = storage.write_upload(object_id, current_user.id, body)
    except InvalidObjectPathError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid object id")
    except UploadOwnerError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    except ObjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Upload URL not found")
    return {"objectPath": object_path, "size": len(body)}


@objects_router.get("/{object_path:path}")
async def download_object(
    object_path: str,
    storage: ObjectStorageService = Depends(get_object_storage)
):
    try:
        full_path = storage.get_path(object_path)
    except ObjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    return FileResponse(full_path)
