"""
Тарифы и биллинг: список тарифов, активация по коду, статус аккаунта.
"""

from .models import Plan
from .crud import PlanCRUD
from .service import BillingService, ACTIVATION_CODES

__all__ = [
    "Plan",
    "PlanCRUD",
    "BillingService",
    "ACTIVATION_CODES"
]
