from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional

from ...core.schemas import CamelModel


class PlanFeatures(CamelModel):
    # -1 означает "без ограничений"
    max_assistants: int = 1
    max_conversations: int = 100
    max_file_uploads: int = 10
    max_file_size: int = 10  # МБ
    api_access: bool = False
    priority_support: bool = False
    custom_branding: bool = False
    analytics: bool = False


class PlanBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    currency: str = "RUB"
    billing_period: str = "monthly"
    features: PlanFeatures = Field(default_factory=PlanFeatures)
    is_active: bool = True
    is_default: bool = False
    sort_order: int = 0
    payment_link: Optional[str] = None

    @field_validator('billing_period')
    @classmethod
    def validate_period(cls, v):
        if v not in ("monthly", "yearly"):
            raise ValueError("billingPeriod должен быть monthly или yearly")
        return v


class PlanCreate(PlanBase):
    pass


class PlanUpdate(CamelModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    billing_period: Optional[str] = None
    features: Optional[PlanFeatures] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    sort_order: Optional[int] = None
    payment_link: Optional[str] = None


class PlanResponse(PlanBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ActivatePlanRequest(CamelModel):
    activation_code: str = Field(..., min_length=1, max_length=50)


class ActivatePlanResponse(CamelModel):
    message: str
    plan: str
    expires_at: datetime
    was_unfrozen: bool


class AccountStatusResponse(CamelModel):
    is_active: bool
    plan: str
    plan_expires_at: Optional[datetime] = None
    days_left: Optional[int] = None
    is_expired: bool
