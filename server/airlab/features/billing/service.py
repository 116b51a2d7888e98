"""
Активация тарифов по коду и статус аккаунта
"""
import logging
from typing import Dict, Any
from sqlalchemy.orm import Session

from ..user.models import User
from ...utils.timezone import TimezoneUtils

logger = logging.getLogger(__name__)

ACTIVATION_CODES = {
    '1962': 'basic',
    '1963': 'pro',
    '1964': 'premium',
}
PLAN_DURATION_DAYS = 30


class InvalidActivationCodeError(Exception):
    def __init__(self):
        super().__init__("Неверный код активации")


class BillingService:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def account_status(user: User) -> Dict[str, Any]:
        """
        Аккаунт неактивен, если заблокирован администратором
        или у платного тарифа истёк срок.
        """
        expires_at = TimezoneUtils.as_utc(user.plan_expires_at)
        is_expired = user.plan != "free" and expires_at is not None and TimezoneUtils.is_past(expires_at)
        return {
            "is_active": bool(user.is_active) and not is_expired,
            "plan": user.plan,
            "plan_expires_at": expires_at,
            "days_left": TimezoneUtils.days_left(expires_at),
            "is_expired": is_expired,
        }

    def activate_plan(self, user: User, activation_code: str) -> Dict[str, Any]:
        plan_name = ACTIVATION_CODES.get(activation_code.strip())
        if not plan_name:
            logger.warning(f"⚠️ Неверный код активации от пользователя {user.id}")
            raise InvalidActivationCodeError()

        was_active = self.account_status(user)["is_active"]

        user.plan = plan_name
        user.plan_expires_at = TimezoneUtils.days_from_now(PLAN_DURATION_DAYS)
        user.is_active = True
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"✅ Пользователь {user.id} активировал тариф {plan_name}")
        return {
            "message": f"Тариф {plan_name.upper()} активирован на 1 месяц",
            "plan": plan_name,
            "expires_at": TimezoneUtils.as_utc(user.plan_expires_at),
            "was_unfrozen": not was_active,
        }
