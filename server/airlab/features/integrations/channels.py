"""
Отправка ответов ассистента во внешние мессенджеры.
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"
VK_API_URL = "https://api.vk.com/method/messages.send"
VK_API_VERSION = "5.199"
WHATSAPP_API_URL = "https://graph.facebook.com/v18.0/{phone_number_id}/messages"

# Ограничение Telegram на длину сообщения
TELEGRAM_MAX_LENGTH = 4096


@dataclass
class SendResult:
    success: bool
    channel: str
    error: Optional[str] = None


class ChannelClient:
    """HTTP-клиент каналов на aiohttp"""

    def __init__(self, timeout: float = 30.0):
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def send_telegram(self, bot_token: str, chat_id: str, text: str) -> SendResult:
        url = TELEGRAM_API_URL.format(token=bot_token)
        payload = {
            "chat_id": chat_id,
            "text": text[:TELEGRAM_MAX_LENGTH],
            "disable_web_page_preview": True,
        }
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=payload) as response:
                    if response.status == 200:
                        return SendResult(success=True, channel="telegram")
                    error_text = await response.text()
                    logger.error(f"❌ Telegram sendMessage: HTTP {response.status}: {error_text}")
                    return SendResult(False, "telegram", f"HTTP {response.status}: {error_text}")
        except aiohttp.ClientError as e:
            logger.error(f"❌ Ошибка отправки в Telegram: {e}")
            return SendResult(False, "telegram", str(e))

    async def send_vk(self, access_token: str, peer_id: str, text: str) -> SendResult:
        data = {
            "peer_id": peer_id,
            "message": text,
            "random_id": random.randint(1, 2**31 - 1),
            "access_token": access_token,
            "v": VK_API_VERSION,
        }
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(VK_API_URL, data=data) as response:
                    body = await response.json(content_type=None)
                    # VK отвечает 200 и при ошибке, признак ошибки в теле
                    if response.status == 200 and "error" not in body:
                        return SendResult(success=True, channel="vk")
                    error = body.get("error", {}).get("error_msg") if isinstance(body, dict) else None
                    logger.error(f"❌ VK messages.send: {error or response.status}")
                    return SendResult(False, "vk", error or f"HTTP {response.status}")
        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"❌ Ошибка отправки в VK: {e}")
            return SendResult(False, "vk", str(e))

    async def send_whatsapp(self, phone_number_id: str, access_token: str, to: str, text: str) -> SendResult:
        url = WHATSAPP_API_URL.format(phone_number_id=phone_number_id)
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": text},
        }
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=payload, headers=headers) as response:
                    if response.status < 400:
                        return SendResult(success=True, channel="whatsapp")
                    error_text = await response.text()
                    logger.error(f"❌ WhatsApp messages: HTTP {response.status}: {error_text}")
                    return SendResult(False, "whatsapp", f"HTTP {response.status}: {error_text}")
        except aiohttp.ClientError as e:
            logger.error(f"❌ Ошибка отправки в WhatsApp: {e}")
            return SendResult(False, "whatsapp", str(e))


def get_channel_client() -> ChannelClient:
    return ChannelClient()
