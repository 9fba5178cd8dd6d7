import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.core.exceptions import BadRequestError, PromotionIneligibleError
from boxoffice.db.capabilities import SchemaCapabilities
from boxoffice.models.order import Order, Ticket
from boxoffice.models.promotion import Promotion, PromotionRedemption
from boxoffice.models.showtime import Showtime
from boxoffice.models.user import User
from boxoffice.schemas.common import MAX_AMOUNT
from boxoffice.schemas.order import PaymentConfirm
from boxoffice.utils.mailer import TicketMailer
from boxoffice.utils.promotions import (
    check_eligibility,
    compute_discount,
    normalize_code,
    normalize_email,
    round_money,
)
from boxoffice.utils.seat_holds import release_seat_holds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: int
    email_sent: bool
    created: bool


def _find_order(db: Session, ref_code: str) -> Optional[Order]:
    return db.query(Order).filter(Order.ref_code == ref_code).first()


def _resolve_promotion(
    db: Session,
    promo_code: Optional[str],
    capabilities: SchemaCapabilities,
    user: Optional[User],
    email: Optional[str],
) -> Optional[Promotion]:
    code = normalize_code(promo_code)
    if not code:
        return None
    if not capabilities.promotions:
        raise BadRequestError("Promotions not enabled")

    promotion = db.query(Promotion).filter(Promotion.code == code).first()
    if promotion is None:
        raise BadRequestError("Invalid promotion code")

    eligibility = check_eligibility(
        db, promotion.id, user_id=user.id if user else None, email=email
    )
    if not eligibility.ok:
        raise PromotionIneligibleError(eligibility.reason)
    return promotion


def confirm_payment(
    db: Session,
    data: PaymentConfirm,
    mailer: TicketMailer,
    capabilities: SchemaCapabilities,
) -> CheckoutResult:
    """
    Turn a paid checkout into an order with one ticket per seat.

    ``ref_code`` is the idempotency key: a second call with the same code
    returns the existing order without touching tickets, redemptions or
    email. Two concurrent first calls race on the unique constraint and the
    loser returns the winner's order.

    The confirmation email is sent after the order is committed; a failed
    send is logged and reported as ``email_sent=False``.
    """
    showtime = db.get(Showtime, data.showtime_id)
    if showtime is None:
        raise BadRequestError(f"Showtime not found (id: {data.showtime_id})")

    seats: List[str] = list(data.seats)
    subtotal = len(seats) * data.price_per_seat
    if subtotal > MAX_AMOUNT:
        raise BadRequestError("Order total is too large")

    user = None
    buyer_email = normalize_email(data.email)
    if buyer_email:
        user = db.query(User).filter(func.lower(User.email) == buyer_email).first()

    existing = _find_order(db, data.ref_code)
    if existing is not None:
        return CheckoutResult(order_id=existing.id, email_sent=False, created=False)

    promotion = _resolve_promotion(db, data.promo_code, capabilities, user, data.email)
    discount = compute_discount(promotion, subtotal) if promotion else 0.0
    total = round_money(max(0.0, subtotal - discount))

    now = datetime.now(timezone.utc)
    order = Order(
        ref_code=data.ref_code,
        showtime_id=showtime.id,
        user_id=user.id if user else None,
        buyer_email=data.email,
        status="paid",
        total_amount=total,
        paid_at=now,
    )
    if promotion:
        order.promo_code = promotion.code
        order.discount_amt = discount
    db.add(order)

    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        winner = _find_order(db, data.ref_code)
        if winner is None:
            raise
        logger.info("Order %s was created concurrently; returning it.", data.ref_code)
        return CheckoutResult(order_id=winner.id, email_sent=False, created=False)

    db.add_all(
        [Ticket(order_id=order.id, seat_label=seat, price=data.price_per_seat) for seat in seats]
    )

    if capabilities.seat_holds:
        release_seat_holds(db, showtime.id, seats)

    if promotion:
        db.add(PromotionRedemption(
            promotion_id=promotion.id,
            order_id=order.id,
            user_id=user.id if user else None,
            email=buyer_email,
        ))

    db.commit()
    order_id = order.id

    email_sent = False
    try:
        email_sent = mailer.send_ticket_email(db, order_id)
    except Exception:
        logger.exception("[mail] failed for order %s", data.ref_code)

    return CheckoutResult(order_id=order_id, email_sent=email_sent, created=True)
