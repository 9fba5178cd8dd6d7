import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from boxoffice.core.config import settings
from boxoffice.models.promotion import Promotion, PromotionRedemption, PromotionType


class IneligibleReason(str, enum.Enum):
    NOT_FOUND = "Promotion not found"
    INACTIVE = "Promotion inactive"
    NOT_STARTED = "Promotion not started"
    EXPIRED = "Promotion expired"
    USAGE_LIMIT_REACHED = "Promotion usage limit reached"
    PER_USER_LIMIT_REACHED = "You already used this code (per-user limit reached)"


@dataclass(frozen=True)
class Eligibility:
    reason: Optional[IneligibleReason] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def normalize_email(email: Optional[str]) -> Optional[str]:
    return (email or "").strip().lower() or None


def round_money(amount) -> float:
    """Two decimals, half-up on the exact value (same digits as JS toFixed(2))."""
    return float(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _promotion_type(promotion) -> str:
    kind = promotion.type
    if isinstance(kind, PromotionType):
        return kind.value
    return str(kind or "").upper()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they were written as UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def compute_discount(promotion, subtotal) -> float:
    """
    Discount for ``subtotal`` under ``promotion``.

    - Below ``min_spend`` there is no discount at all.
    - PERCENT takes ``value`` percent of the subtotal, FIXED takes ``value``.
    - The result is capped by ``max_discount`` when set, then clamped to
      ``[0, subtotal]`` and rounded to two decimals.
    """
    subtotal = float(subtotal)
    if promotion.min_spend is not None and subtotal < float(promotion.min_spend):
        return 0.0

    kind = _promotion_type(promotion)
    discount = 0.0
    if kind == PromotionType.PERCENT.value:
        discount = subtotal * (float(promotion.value) / 100)
    elif kind == PromotionType.FIXED.value:
        discount = float(promotion.value)

    if promotion.max_discount is not None:
        discount = min(discount, float(promotion.max_discount))
    discount = max(0.0, min(discount, subtotal))
    return round_money(discount)


def promotion_label(promotion) -> str:
    value = f"{float(promotion.value):g}"
    if _promotion_type(promotion) == PromotionType.PERCENT.value:
        return f"{value}% off"
    return f"{value} {settings.CURRENCY} off"


def check_eligibility(
    db: Session,
    promotion_id: int,
    user_id: Optional[int] = None,
    email: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Eligibility:
    """
    Decide whether a promotion can be redeemed right now by this buyer.

    Checks run in order and stop at the first failure: existence and
    ``active`` flag, validity window, global ``usage_limit``, then
    ``usage_per_user`` counted over redemptions by ``user_id`` OR ``email``.
    The per-user check is skipped when the buyer is anonymous.
    """
    promotion = db.get(Promotion, promotion_id)
    if promotion is None:
        return Eligibility(IneligibleReason.NOT_FOUND)
    if not promotion.active:
        return Eligibility(IneligibleReason.INACTIVE)

    now = _as_utc(now) or datetime.now(timezone.utc)
    starts_at = _as_utc(promotion.starts_at)
    ends_at = _as_utc(promotion.ends_at)
    if starts_at and now < starts_at:
        return Eligibility(IneligibleReason.NOT_STARTED)
    if ends_at and now > ends_at:
        return Eligibility(IneligibleReason.EXPIRED)

    redemptions = db.query(func.count(PromotionRedemption.id)).filter(
        PromotionRedemption.promotion_id == promotion.id
    )

    if promotion.usage_limit is not None:
        if redemptions.scalar() >= promotion.usage_limit:
            return Eligibility(IneligibleReason.USAGE_LIMIT_REACHED)

    if promotion.usage_per_user is not None:
        identity = []
        if user_id is not None:
            identity.append(PromotionRedemption.user_id == user_id)
        email = normalize_email(email)
        if email:
            identity.append(PromotionRedemption.email == email)
        # Anonymous checkouts skip this check instead of counting every
        # redemption against usage_per_user.
        if identity:
            used_by_buyer = redemptions.filter(or_(*identity)).scalar()
            if used_by_buyer >= promotion.usage_per_user:
                return Eligibility(IneligibleReason.PER_USER_LIMIT_REACHED)

    return Eligibility()


def usage_stats(db: Session, promotion_id: int) -> Tuple[int, int]:
    """Returns (redemption count, distinct buyers) for the admin list."""
    rows = (
        db.query(PromotionRedemption.user_id, PromotionRedemption.email)
        .filter(PromotionRedemption.promotion_id == promotion_id)
        .all()
    )
    buyers = set()
    for row in rows:
        if row.user_id is not None:
            buyers.add(f"uid:{row.user_id}")
        elif row.email:
            buyers.add(f"email:{row.email.lower()}")
    return len(rows), len(buyers)
