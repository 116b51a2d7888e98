"""
Тесты сервиса фоторедактора
"""

import io
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from PIL import Image

from airlab.features.photo_editor.service import (
    PhotoEditorService, ImageDownloadError, prepare_png, EDIT_MODEL, GENERATION_MODEL, VISION_MODEL
)


def make_image(width, height, fmt="JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 10, 10)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def images_client():
    client = Mock()
    client.images.generate = AsyncMock(return_value=SimpleNamespace(
        data=[SimpleNamespace(url="https://img/1.png", b64_json=None, revised_prompt="кот в шляпе")]
    ))
    client.images.edit = AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(url="https://img/edit.png")]))
    client.images.create_variation = AsyncMock(return_value=SimpleNamespace(
        data=[SimpleNamespace(url="https://img/v1.png"), SimpleNamespace(url="https://img/v2.png")]
    ))
    return client


@pytest.fixture
def editor(mock_openai, images_client):
    mock_openai.require_client = Mock(return_value=images_client)
    service = PhotoEditorService(mock_openai)
    service.download_image = AsyncMock(return_value=make_image(1600, 1200))
    return service


class TestPreparePng:

    def test_square_rgba_png(self):
        result = Image.open(io.BytesIO(prepare_png(make_image(1600, 1200))))
        assert result.format == "PNG"
        assert result.mode == "RGBA"
        assert result.size == (1024, 1024)

    def test_small_image_not_upscaled(self):
        result = Image.open(io.BytesIO(prepare_png(make_image(300, 500, fmt="PNG"))))
        assert result.size == (300, 300)

    def test_not_an_image(self):
        with pytest.raises(ImageDownloadError):
            prepare_png(b"definitely not an image")


class TestPhotoEditorService:

    @pytest.mark.asyncio
    async def test_generate(self, editor, images_client):
        result = await editor.generate_image("кот", size="1792x1024", quality="hd")

        assert result == {"url": "https://img/1.png", "b64_json": None, "revised_prompt": "кот в шляпе"}
        kwargs = images_client.images.generate.await_args.kwargs
        assert kwargs["model"] == GENERATION_MODEL
        assert kwargs["size"] == "1792x1024"
        assert kwargs["quality"] == "hd"

    @pytest.mark.asyncio
    async def test_edit_sends_png(self, editor, images_client):
        result = await editor.edit_image("https://example.com/photo.jpg", "Добавь закат")

        assert result == {"url": "https://img/edit.png"}
        kwargs = images_client.images.edit.await_args.kwargs
        assert kwargs["model"] == EDIT_MODEL
        assert kwargs["image"][0] == "image.png"
        assert kwargs["image"][1].startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_variations_count_is_capped(self, editor, images_client):
        result = await editor.create_variations("https://example.com/photo.jpg", count=10)

        assert result == {"urls": ["https://img/v1.png", "https://img/v2.png"]}
        assert images_client.images.create_variation.await_args.kwargs["n"] == 4

    @pytest.mark.asyncio
    async def test_analyze_parses_json(self, editor, mock_openai):
        mock_openai.chat_completion = AsyncMock(
            return_value='{"description": "Красный квадрат", "suggestions": ["Добавить тень"]}'
        )

        result = await editor.analyze_image("https://example.com/photo.jpg")

        assert result == {"description": "Красный квадрат", "suggestions": ["Добавить тень"]}
        assert mock_openai.chat_completion.await_args.kwargs["model"] == VISION_MODEL

    @pytest.mark.asyncio
    async def test_analyze_plain_text(self, editor, mock_openai):
        mock_openai.chat_completion = AsyncMock(return_value="Просто текст")
        result = await editor.analyze_image("https://example.com/photo.jpg")
        assert result == {"description": "Просто текст", "suggestions": []}

    @pytest.mark.asyncio
    async def test_chat_keeps_history(self, editor, mock_openai):
        history = [{"role": "user", "content": "Что это?"}, {"role": "assistant", "content": "Фото"}]

        result = await editor.chat_with_image("https://example.com/photo.jpg", "Сделай ярче", history)

        assert result == {"response": "Ответ модели"}
        messages = mock_openai.chat_completion.await_args.args[0]
        assert messages[0]["role"] == "system"
        assert messages[1:3] == history
        assert messages[3]["content"][1]["image_url"]["url"] == "https://example.com/photo.jpg"
