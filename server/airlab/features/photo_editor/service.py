"""
AI фоторедактор: генерация (DALL-E 3), редактирование и вариации (DALL-E 2),
анализ и чат по изображению (GPT-4o Vision).
"""
import io
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAIError
from PIL import Image, UnidentifiedImageError

from ...services.openai_service import OpenAIService, OpenAIServiceError

logger = logging.getLogger(__name__)

GENERATION_MODEL = "dall-e-3"
EDIT_MODEL = "dall-e-2"
VISION_MODEL = "gpt-4o"
MAX_VARIATIONS = 4
# DALL-E 2 принимает квадратный PNG до 4 МБ
EDIT_IMAGE_SIZE = 1024

CHAT_SYSTEM_PROMPT = (
    "Вы - профессиональный фоторедактор и дизайнер. Помогайте пользователям с редактированием, "
    "анализом и улучшением изображений. Предлагайте конкретные техники редактирования и "
    "креативные решения. Отвечайте на русском языке."
)


class ImageDownloadError(OpenAIServiceError):
    pass


def prepare_png(image_bytes: bytes, size: int = EDIT_IMAGE_SIZE) -> bytes:
    """Приводит изображение к квадратному RGBA PNG для DALL-E 2"""
    try:
        image = Image.open(io.BytesIO(image_bytes))
    except UnidentifiedImageError:
        raise ImageDownloadError("Файл не является изображением")

    image = image.convert("RGBA")
    side = min(image.size)
    left = (image.width - side) // 2
    top = (image.height - side) // 2
    image = image.crop((left, top, left + side, top + side))
    if side > size:
        image = image.resize((size, size))

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _image_content(text: str, image_url: str) -> List[Dict[str, Any]]:
    return [
        {"type": "text", "text": text},
        {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
    ]


class PhotoEditorService:
    def __init__(self, openai_service: Optional[OpenAIService] = None):
        self.openai = openai_service or OpenAIService()

    async def download_image(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.error(f"❌ Не удалось скачать изображение {url}: {e}")
            raise ImageDownloadError(f"Не удалось скачать изображение: {e}")

    async def generate_image(
        self,
        prompt: str,
        size: str = "1024x1024",
        quality: str = "standard",
        style: str = "vivid",
        response_format: str = "url",
    ) -> Dict[str, Any]:
        client = self.openai.require_client()
        try:
            response = await client.images.generate(
                model=GENERATION_MODEL,
                prompt=prompt,
                n=1,
                size=size,
                quality=quality,
                style=style,
                response_format=response_format,
            )
        except OpenAIError as e:
            logger.error(f"❌ Ошибка генерации изображения: {e}")
            raise OpenAIServiceError(f"Не удалось сгенерировать изображение: {e}")

        if not response.data:
            raise OpenAIServiceError("Не удалось получить данные изображения")
        image = response.data[0]
        logger.info(f"🎨 Сгенерировано изображение ({size}, {quality})")
        return {
            "url": image.url or "",
            "b64_json": getattr(image, "b64_json", None),
            "revised_prompt": getattr(image, "revised_prompt", None),
        }

    async def edit_image(self, image_url: str, instructions: str) -> Dict[str, str]:
        client = self.openai.require_client()
        image = prepare_png(await self.download_image(image_url))
        try:
            response = await client.images.edit(
                model=EDIT_MODEL,
                image=("image.png", image, "image/png"),
                prompt=instructions,
                n=1,
                size="1024x1024",
                response_format="url",
            )
        except OpenAIError as e:
            logger.error(f"❌ Ошибка редактирования изображения: {e}")
            raise OpenAIServiceError(f"Не удалось отредактировать изображение: {e}")

        if not response.data:
            raise OpenAIServiceError("Не удалось получить отредактированное изображение")
        return {"url": response.data[0].url or ""}

    async def create_variations(self, image_url: str, count: int = 1) -> Dict[str, List[str]]:
        client = self.openai.require_client()
        image = prepare_png(await self.download_image(image_url))
        try:
            response = await client.images.create_variation(
                model=EDIT_MODEL,
                image=("image.png", image, "image/png"),
                n=max(1, min(count, MAX_VARIATIONS)),
                size="1024x1024",
                response_format="url",
            )
        except OpenAIError as e:
            logger.error(f"❌ Ошибка создания вариаций: {e}")
            raise OpenAIServiceError(f"Не удалось создать вариации изображения: {e}")
        return {"urls": [item.url or "" for item in response.data or []]}

    async def analyze_image(self, image_url: str, prompt: str = "Опишите это изображение подробно") -> Dict[str, Any]:
        text = (
            f"{prompt}. Также предложите несколько вариантов улучшения или редактирования этого "
            'изображения. Ответьте в формате JSON: {"description": "описание", '
            '"suggestions": ["вариант1", "вариант2", "вариант3"]}'
        )
        raw = await self.openai.chat_completion(
            [{"role": "user", "content": _image_content(text, image_url)}],
            model=VISION_MODEL,
            max_tokens=1000,
            response_format={"type": "json_object"},
        )
        try:
            result = json.loads(raw or "{}")
        except json.JSONDecodeError:
            logger.warning("⚠️ Анализ изображения вернул не JSON")
            result = {"description": raw}
        return {
            "description": result.get("description") or "Описание недоступно",
            "suggestions": result.get("suggestions") or [],
        }

    async def chat_with_image(
        self,
        image_url: str,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> Dict[str, str]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        for item in history or []:
            messages.append({"role": item["role"], "content": item["content"]})
        messages.append({"role": "user", "content": _image_content(message, image_url)})

        reply = await self.openai.chat_completion(messages, model=VISION_MODEL, temperature=0.7, max_tokens=1500)
        return {"response": reply or "Ответ недоступен"}

    @staticmethod
    def get_model_info() -> Dict[str, str]:
        return {
            "imageGeneration": "DALL-E 3",
            "imageEditing": "DALL-E 2",
            "imageAnalysis": "GPT-4o Vision",
            "chat": "GPT-4o",
        }
