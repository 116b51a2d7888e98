"""
Получение текста Google Docs через публичный экспорт
"""
import logging
import re
from typing import Optional, Dict
from urllib.parse import unquote

import httpx
from bs4 import BeautifulSoup, NavigableString
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from ..core.config import settings
from .google_drive import GoogleDriveService

logger = logging.getLogger(__name__)

DOC_ID_PATTERNS = [
    re.compile(r'/document/d/([a-zA-Z0-9-_]+)'),
    re.compile(r'/d/([a-zA-Z0-9-_]+)'),
    re.compile(r'id=([a-zA-Z0-9-_]+)'),
]

EXPORT_URL = "https://docs.google.com/document/d/{doc_id}/export?format={fmt}"


def extract_doc_id(url: str) -> Optional[str]:
    """
    Извлекает ID документа из ссылки Google Docs / Drive.

    Поддерживаются /document/d/<id>, /d/<id> и ?id=<id>.
    """
    if not url or not isinstance(url, str):
        return None
    for pattern in DOC_ID_PATTERNS:
        match = pattern.search(url.strip())
        if match:
            return match.group(1)
    return None


# Блочные элементы: после абзаца пустая строка, после строки списка/таблицы перевод строки
PARAGRAPH_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "table", "blockquote", "pre"]
LINE_TAGS = ["li", "tr", "div", "dt", "dd"]


def html_to_text(html: str) -> str:
    """
    Превращает HTML-экспорт документа в простой текст.

    Соседние inline-элементы (span, b, a) остаются на одной строке,
    переводы строк ставятся только на границах блочных элементов.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head", "title", "meta"]):
        tag.decompose()

    # Пробельные символы внутри текста схлопываются, как в браузере
    for node in soup.find_all(string=True):
        if type(node) is NavigableString:
            node.replace_with(re.sub(r'\s+', ' ', str(node)))

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for cell in soup.find_all(["td", "th"]):
        cell.insert_after(" ")
    for tag in soup.find_all(PARAGRAPH_TAGS + LINE_TAGS):
        previous = tag.previous_sibling
        if isinstance(previous, NavigableString) and previous.strip():
            tag.insert_before("\n")
        tag.insert_after("\n\n" if tag.name in PARAGRAPH_TAGS else "\n")

    lines = [line.strip() for line in soup.get_text().splitlines()]
    # Схлопываем серии пустых строк в одну
    return re.sub(r'\n{3,}', '\n\n', "\n".join(lines)).strip()


def normalize_text(text: str) -> Optional[str]:
    if text is None:
        return None
    text = text.replace('\ufeff', '').replace('\r\n', '\n').replace('\r', '\n').strip()
    return text or None


def looks_like_html(content_type: str, body: str) -> bool:
    if "html" in (content_type or "").lower():
        return True
    return body.lstrip().startswith("<")


def title_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """Имя файла из Content-Disposition без расширения"""
    if not header:
        return None
    match = re.search(r"filename\*=(?:UTF-8'')?([^;]+)", header, re.IGNORECASE)
    if match:
        name = unquote(match.group(1).strip().strip('"'))
    else:
        match = re.search(r'filename="?([^";]+)"?', header, re.IGNORECASE)
        if not match:
            return None
        name = match.group(1).strip()
    name = re.sub(r'\.(txt|html)$', '', name, flags=re.IGNORECASE).strip()
    return name or None


class GoogleDocsService:
    """Сервис получения публичных Google Docs"""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        drive: Optional[GoogleDriveService] = None,
        timeout: Optional[float] = None,
    ):
        self.timeout = timeout or settings.GOOGLE_DOCS_TIMEOUT
        self._client = client
        self.drive = drive if drive is not None else GoogleDriveService.from_settings()

    extract_doc_id = staticmethod(extract_doc_id)

    def _make_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)

    async def _close_client(self, client: httpx.AsyncClient):
        if client is not self._client:
            await client.aclose()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_random_exponential(multiplier=1, max=10),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _request(self, method: str, url: str) -> httpx.Response:
        client = self._make_client()
        try:
            return await client.request(method, url)
        finally:
            await self._close_client(client)

    async def get_doc_info(self, doc_id: str) -> Optional[Dict[str, str]]:
        """
        Проверяет, что документ доступен, и возвращает {id, title}.
        None - документ закрыт или не существует.
        """
        url = EXPORT_URL.format(doc_id=doc_id, fmt="txt")
        try:
            response = await self._request("HEAD", url)
        except httpx.HTTPError as e:
            logger.error(f"❌ Ошибка проверки доступности Google Doc {doc_id}: {e}")
            response = None

        if response is not None and response.status_code == 200:
            title = title_from_content_disposition(response.headers.get("content-disposition"))
            return {"id": doc_id, "title": title or f"Google Docs Document {doc_id}"}

        if self.drive and self.drive.is_configured:
            info = await self.drive.get_file_info(doc_id)
            if info:
                return {"id": doc_id, "title": info.get("name") or f"Google Docs Document {doc_id}"}

        status = response.status_code if response is not None else "n/a"
        logger.info(f"Документ {doc_id} недоступен публично (status: {status})")
        return None

    async def is_document_accessible(self, doc_id: str) -> bool:
        return await self.get_doc_info(doc_id) is not None

    async def _fetch_export(self, doc_id: str, fmt: str) -> Optional[str]:
        url = EXPORT_URL.format(doc_id=doc_id, fmt=fmt)
        try:
            response = await self._request("GET", url)
        except httpx.HTTPError as e:
            logger.error(f"❌ Ошибка загрузки Google Doc {doc_id} ({fmt}): {e}")
            return None

        if response.status_code != 200:
            logger.info(f"Не удалось получить документ {doc_id} ({fmt}): {response.status_code}")
            return None

        body = response.text
        if looks_like_html(response.headers.get("content-type", ""), body):
            return normalize_text(html_to_text(body))
        return normalize_text(body)

    async def get_document_content(self, doc_id: str) -> Optional[str]:
        """
        Текст документа: txt-экспорт, затем html-экспорт, затем Drive API
        (если настроен сервисный аккаунт). HTML превращается в текст.
        """
        text = await self._fetch_export(doc_id, "txt")
        if text is None:
            text = await self._fetch_export(doc_id, "html")
        if text is None and self.drive and self.drive.is_configured:
            text = normalize_text(await self.drive.get_document_content(doc_id))

        if text is None:
            logger.info(f"Документ {doc_id} пуст или недоступен")
        return text
