"""
Хеширование паролей и генерация токенов сессий
"""
import secrets

import bcrypt

from .config import settings


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Проверка пароля; битый хеш считается несовпадением"""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def generate_session_token() -> str:
    return secrets.token_hex(32)


def mask_secret(value: str, visible: int = 4) -> str:
    """Маскирует секрет, оставляя последние символы: '****abcd'"""
    if not value:
        return value
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * 8 + value[-visible:]
