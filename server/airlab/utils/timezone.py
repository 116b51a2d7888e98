"""
Утилиты для работы с timezone - всё храним и сравниваем в UTC
"""
from datetime import datetime, timezone, timedelta
from typing import Optional
import math
import time


class TimezoneUtils:
    """Утилиты для работы с timezone"""

    @staticmethod
    def now_utc() -> datetime:
        """Текущее время в UTC"""
        return datetime.now(timezone.utc)

    @staticmethod
    def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
        """
        Приводит время из БД к aware UTC.
        SQLite возвращает naive datetime, считаем его UTC.
        """
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def is_past(dt: Optional[datetime]) -> bool:
        if dt is None:
            return False
        return TimezoneUtils.as_utc(dt) <= TimezoneUtils.now_utc()

    @staticmethod
    def days_from_now(days: int) -> datetime:
        return TimezoneUtils.now_utc() + timedelta(days=days)

    @staticmethod
    def days_left(dt: Optional[datetime]) -> Optional[int]:
        """Сколько дней осталось до даты, с округлением вверх"""
        if dt is None:
            return None
        seconds = (TimezoneUtils.as_utc(dt) - TimezoneUtils.now_utc()).total_seconds()
        if seconds <= 0:
            return 0
        return math.ceil(seconds / 86400)

    @staticmethod
    def iso_now() -> str:
        return TimezoneUtils.now_utc().isoformat().replace("+00:00", "Z")

    @staticmethod
    def now_ms() -> int:
        return int(time.time() * 1000)
