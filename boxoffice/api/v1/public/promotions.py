from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.api.deps import require_promotions
from boxoffice.core.exceptions import PromotionIneligibleError
from boxoffice.models.promotion import Promotion
from boxoffice.schemas.common import MAX_AMOUNT
from boxoffice.schemas.promotion import (
    PromotionPreviewResponse,
    PromotionApply,
    PromotionApplyResponse,
    AppliedPromotion,
)
from boxoffice.utils.promotions import (
    check_eligibility,
    compute_discount,
    normalize_code,
    promotion_label,
    round_money,
)

router = APIRouter(
    prefix="/promotions",
    tags=["Promotions"],
    dependencies=[Depends(require_promotions)],
)


def _eligible_promotion(db: Session, code: Optional[str], email: Optional[str]) -> Promotion:
    """Look up a code and run the eligibility checks for an (optional) buyer email."""
    code = normalize_code(code)
    if not code:
        raise HTTPException(status_code=400, detail="Missing code")
    promotion = db.query(Promotion).filter(Promotion.code == code).first()
    if not promotion:
        raise HTTPException(status_code=404, detail="Code not found")

    eligibility = check_eligibility(db, promotion.id, email=email)
    if not eligibility.ok:
        raise PromotionIneligibleError(eligibility.reason)
    return promotion


@router.get("/preview", response_model=PromotionPreviewResponse)
def preview_promotion(
    code: Optional[str] = Query(None),
    amount: float = Query(0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False),
    email: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Discount a code would give on ``amount``, without redeeming it."""
    promotion = _eligible_promotion(db, code, email)
    discount = compute_discount(promotion, amount)
    return PromotionPreviewResponse(
        discount=discount,
        final=round_money(max(0.0, amount - discount)),
    )


@router.post("/apply", response_model=PromotionApplyResponse)
def apply_promotion(data: PromotionApply, db: Session = Depends(get_db)):
    """Price a cart of ``seat_count`` seats at ``base_price`` with a code."""
    subtotal = data.seat_count * data.base_price
    if subtotal > MAX_AMOUNT:
        raise HTTPException(status_code=400, detail="Order total is too large")
    promotion = _eligible_promotion(db, data.code, data.email)
    discount = compute_discount(promotion, subtotal)
    return PromotionApplyResponse(
        promo=AppliedPromotion(
            id=promotion.id,
            code=promotion.code,
            label=promotion_label(promotion),
            discount_amount=discount,
            final_total=round_money(max(0.0, subtotal - discount)),
        )
    )
