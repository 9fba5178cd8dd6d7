from typing import Optional, List
from pydantic import Field, field_validator
from datetime import datetime

from boxoffice.models.promotion import PromotionType
from boxoffice.schemas.common import CamelModel, OkResponse, MAX_AMOUNT, MAX_SEATS_PER_ORDER


class PromotionCreate(CamelModel):
    code: str = Field(min_length=1)
    type: PromotionType
    value: float = Field(ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    max_discount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    min_spend: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_per_user: Optional[int] = Field(default=None, ge=0)
    active: bool = True

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class PromotionUpdate(CamelModel):
    code: Optional[str] = None
    type: Optional[PromotionType] = None
    value: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    max_discount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    min_spend: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_per_user: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class Promotion(CamelModel):
    id: int
    code: str
    type: str
    value: float
    max_discount: Optional[float] = None
    min_spend: Optional[float] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_per_user: Optional[int] = None
    active: bool
    created_at: Optional[datetime] = None


# Admin list view, with redemption stats
class PromotionWithStats(Promotion):
    usage_count: int = 0
    unique_users: int = 0


class PromotionResponse(OkResponse):
    promotion: Promotion


class PromotionListResponse(OkResponse):
    promotions: List[PromotionWithStats]


# GET /promotions/preview
class PromotionPreviewResponse(OkResponse):
    discount: float
    final: float


# POST /promotions/apply
class PromotionApply(CamelModel):
    code: Optional[str] = None
    seat_count: int = Field(default=1, ge=0, le=MAX_SEATS_PER_ORDER)
    base_price: float = Field(default=0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    email: Optional[str] = None


class AppliedPromotion(CamelModel):
    id: int
    code: str
    label: str
    discount_amount: float
    final_total: float


class PromotionApplyResponse(OkResponse):
    promo: AppliedPromotion
