from fastapi import APIRouter, Depends, HTTPException, status
import logging

from ...services.openai_service import OpenAIService, OpenAIServiceError, OpenAINotConfiguredError, get_openai_service
from ..auth.dependencies import get_current_user
from ..user.models import User
from .schemas import (
    GenerateImageRequest, EditImageRequest, AnalyzeImageRequest, VariationsRequest, ImageChatRequest
)
from .service import PhotoEditorService, ImageDownloadError

logger = logging.getLogger(__name__)

photo_editor_router = APIRouter(prefix="/api/photo-editor", tags=["photo-editor"])


def get_photo_editor(openai_service: OpenAIService = Depends(get_openai_service)) -> PhotoEditorService:
    return PhotoEditorService(openai_service)


def _raise(e: OpenAIServiceError):
    if isinstance(e, OpenAINotConfiguredError):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if isinstance(e, ImageDownloadError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@photo_editor_router.get("/model-info")
async def model_info(current_user: User = Depends(get_current_user)):
    return PhotoEditorService.get_model_info()


@photo_editor_router.post("/generate")
async def generate_image(
    data: GenerateImageRequest,
    current_user: User = Depends(get_current_user),
    editor: PhotoEditorService = Depends(get_photo_editor)
):
    try:
        result = await editor.generate_image(
            data.prompt,
            size=data.settings.size,
            quality=data.settings.quality,
            style=data.settings.style,
            response_format=data.settings.response_format,
        )
    except OpenAIServiceError as e:
        _raise(e)
    return {"url": result["url"], "b64Json": result["b64_json"], "revisedPrompt": result["revised_prompt"]}


@photo_editor_router.post("/edit")
async def edit_image(
    data: EditImageRequest,
    current_user: User = Depends(get_current_user),
    editor: PhotoEditorService = Depends(get_photo_editor)
):
    try:
        return await editor.edit_image(data.image_url, data.edit_instructions)
    except OpenAIServiceError as e:
        _raise(e)


@photo_editor_router.post("/analyze")
async def analyze_image(
    data: AnalyzeImageRequest,
    current_user: User = Depends(get_current_user),
    editor: PhotoEditorService = Depends(get_photo_editor)
):
    try:
        if data.prompt:
            return await editor.analyze_image(data.image_url, data.prompt)
        return await editor.analyze_image(data.image_url)
    except OpenAIServiceError as e:
        _raise(e)


@photo_editor_router.post("/variations")
async def create_variations(
    data: VariationsRequest,
    current_user: User = Depends(get_current_user),
    editor: PhotoEditorService = Depends(get_photo_editor)
):
    try:
        return await editor.create_variations(data.image_url, data.count)
    except OpenAIServiceError as e:
        _raise(e)


@photo_editor_router.post("/chat")
async def chat_with_image(
    data: ImageChatRequest,
    current_user: User = Depends(get_current_user),
    editor: PhotoEditorService = Depends(get_photo_editor)
):
    history = [m.model_dump() for m in data.conversation_history]
    try:
        return await editor.chat_with_image(data.image_url, data.message, history)
    except OpenAIServiceError as e:
        _raise(e)
