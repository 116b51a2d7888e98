"""
CRUD операции для тарифных планов
"""
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from .models import Plan
from .schemas import PlanCreate, PlanUpdate, PlanFeatures

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "name": "free", "display_name": "Free", "price": 0, "sort_order": 0, "is_default": True,
        "features": {"maxAssistants": 1, "maxConversations": 100, "maxFileUploads": 5, "maxFileSize": 10},
    },
    {
        "name": "basic", "display_name": "Basic", "price": 990, "sort_order": 1,
        "features": {"maxAssistants": 3, "maxConversations": 1000, "maxFileUploads": 20, "maxFileSize": 20,
                     "apiAccess": True},
    },
    {
        "name": "pro", "display_name": "Pro", "price": 2990, "sort_order": 2,
        "features": {"maxAssistants": 10, "maxConversations": 10000, "maxFileUploads": 100, "maxFileSize": 50,
                     "apiAccess": True, "prioritySupport": True, "analytics": True},
    },
    {
        "name": "premium", "display_name": "Premium", "price": 7990, "sort_order": 3,
        "features": {"maxAssistants": -1, "maxConversations": -1, "maxFileUploads": -1, "maxFileSize": 100,
                     "apiAccess": True, "prioritySupport": True, "customBranding": True, "analytics": True},
    },
]


def _features_dict(features) -> Dict[str, Any]:
    return PlanFeatures.model_validate(features or {}).model_dump(by_alias=True)


class PlanCRUD:
    """CRUD для тарифов"""

    @staticmethod
    def get_by_id(db: Session, plan_id: str) -> Optional[Plan]:
        return db.query(Plan).filter(Plan.id == plan_id).first()

    @staticmethod
    def get_by_name(db: Session, name: str) -> Optional[Plan]:
        return db.query(Plan).filter(Plan.name == name).first()

    @staticmethod
    def get_all(db: Session, only_active: bool = False) -> List[Plan]:
        query = db.query(Plan)
        if only_active:
            query = query.filter(Plan.is_active == True)
        return query.order_by(Plan.sort_order, Plan.price).all()

    @staticmethod
    def create(db: Session, data: PlanCreate) -> Plan:
        payload = data.model_dump(exclude={"features"})
        plan = Plan(**payload, features=_features_dict(data.features))
        db.add(plan)
        db.commit()
        db.refresh(plan)
        logger.info(f"Создан тариф {plan.name}")
        return plan

    @staticmethod
    def update(db: Session, plan: Plan, data: PlanUpdate) -> Plan:
        updates = data.model_dump(exclude_unset=True, exclude={"features"})
        for key, value in updates.items():
            setattr(plan, key, value)
        if data.features is not None:
            plan.features = _features_dict(data.features)
        db.commit()
        db.refresh(plan)
        return plan

    @staticmethod
    def delete(db: Session, plan: Plan) -> bool:
        db.delete(plan)
        db.commit()
        return True

    @staticmethod
    def get_features(db: Session, plan_name: str) -> Dict[str, Any]:
        """Возможности тарифа; для неизвестного тарифа - ограничения по умолчанию"""
        plan = PlanCRUD.get_by_name(db, plan_name)
        if plan:
            return _features_dict(plan.features)
        for default in DEFAULT_PLANS:
            if default["name"] == plan_name:
                return _features_dict(default["features"])
        return _features_dict({})

    @staticmethod
    def seed_default_plans(db: Session) -> int:
        """Создаёт стандартные тарифы, если таблица пуста"""
        if db.query(Plan).count() > 0:
            return 0
        for data in DEFAULT_PLANS:
            db.add(Plan(**{**data, "features": _features_dict(data["features"])}))
        db.commit()
        logger.info(f"✅ Созданы тарифы по умолчанию: {len(DEFAULT_PLANS)}")
        return len(DEFAULT_PLANS)
