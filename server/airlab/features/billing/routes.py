from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List
import logging

from ...core.database import get_db
from ..auth.dependencies import get_current_user, require_admin
from ..user.models import User
from .crud import PlanCRUD
from .schemas import (
    PlanCreate, PlanUpdate, PlanResponse,
    ActivatePlanRequest, ActivatePlanResponse, AccountStatusResponse
)
from .service import BillingService, InvalidActivationCodeError

logger = logging.getLogger(__name__)

billing_router = APIRouter(prefix="/api", tags=["billing"])
admin_plans_router = APIRouter(prefix="/api/admin/plans", tags=["admin"])


# === ТАРИФЫ ===

@billing_router.get("/plans", response_model=List[PlanResponse])
async def list_active_plans(db: Session = Depends(get_db)):
    """Публичный список активных тарифов"""
    return PlanCRUD.get_all(db, only_active=True)


@billing_router.get("/activate-plan")
async def activate_plan_info():
    return {"message": "Endpoint для активации тарифов. Используйте POST запрос с кодом активации."}


@billing_router.post("/activate-plan", response_model=ActivatePlanResponse)
async def activate_plan(
    data: ActivatePlanRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return BillingService(db).activate_plan(current_user, data.activation_code)
    except InvalidActivationCodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@billing_router.get("/account-status", response_model=AccountStatusResponse)
async def account_status(current_user: User = Depends(get_current_user)):
    return BillingService.account_status(current_user)


# === АДМИНИСТРИРОВАНИЕ ТАРИФОВ ===

@admin_plans_router.get("", response_model=List[PlanResponse])
async def admin_list_plans(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return PlanCRUD.get_all(db)


@admin_plans_router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_plan(
    data: PlanCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return PlanCRUD.create(db, data)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Тариф {data.name} уже существует"
        )


@admin_plans_router.put("/{plan_id}", response_model=PlanResponse)
async def admin_update_plan(
    plan_id: str,
    data: PlanUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    plan = PlanCRUD.get_by_id(db, plan_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Тариф не найден")
    return PlanCRUD.update(db, plan, data)


@admin_plans_router.delete("/{plan_id}")
async def admin_delete_plan(
    plan_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    plan = PlanCRUD.get_by_id(db, plan_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Тариф не найден")
    PlanCRUD.delete(db, plan)
    logger.info(f"API: Администратор {admin.username} удалил тариф {plan_id}")
    return {"message": "Тариф удалён"}
