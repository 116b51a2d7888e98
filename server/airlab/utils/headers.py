"""
Заголовки ответов для скачивания файлов
"""
from urllib.parse import quote


def attachment_header(filename: str) -> str:
    """
    Content-Disposition для вложения.

    filename= содержит ASCII-версию имени, filename*= полное имя в UTF-8 (RFC 5987).
    """
    fallback = "".join(
        ch if ch.isascii() and ch.isprintable() and ch not in '"\\' else "_"
        for ch in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
