from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from boxoffice.db.session import get_db
from boxoffice.models.user import User
from boxoffice.models.order import Order
from boxoffice.models.showtime import Showtime
from boxoffice.schemas.user import RoleResponse
from boxoffice.schemas.order import (
    Order as OrderSchema,
    OrderListResponse,
    Ticket as TicketSchema,
    TicketMovie,
    TicketShowtime,
)

router = APIRouter(prefix="/users", tags=["Users"])


def _clean_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="Missing email")
    return email


def _serialize_order(order: Order) -> OrderSchema:
    showtime = None
    if order.showtime:
        st = order.showtime
        movie = None
        if st.movie:
            movie = TicketMovie(
                id=st.movie.id,
                title=st.movie.title,
                duration_min=st.movie.duration_min,
                rating=st.movie.rating,
            )
        showtime = TicketShowtime(
            id=st.id,
            theater=st.theater,
            starts_at=st.starts_at,
            base_price=st.base_price,
            movie=movie,
        )

    return OrderSchema(
        order_id=order.id,
        ref_code=order.ref_code,
        status=order.status,
        total_amount=order.total_amount,
        promo_code=order.promo_code,
        discount_amt=order.discount_amt,
        created_at=order.created_at,
        paid_at=order.paid_at,
        buyer_email=order.buyer_email,
        showtime=showtime,
        tickets=[TicketSchema.model_validate(t) for t in order.tickets],
    )


@router.get("/{email}/role", response_model=RoleResponse)
def get_role(email: str, db: Session = Depends(get_db)):
    """Role for an email; unknown emails are plain users."""
    email = _clean_email(email)
    role = db.query(User.role).filter(func.lower(User.email) == email).scalar()
    return RoleResponse(role=(role or "USER").upper())


@router.get("/{email}/tickets", response_model=OrderListResponse)
def list_tickets(email: str, db: Session = Depends(get_db)):
    """Orders bought with this email or by the account that owns it, newest first."""
    email = _clean_email(email)
    orders = (
        db.query(Order)
        .outerjoin(User, User.id == Order.user_id)
        .options(
            joinedload(Order.tickets),
            joinedload(Order.showtime).joinedload(Showtime.movie),
        )
        .filter(or_(func.lower(Order.buyer_email) == email, func.lower(User.email) == email))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return OrderListResponse(orders=[_serialize_order(o) for o in orders])
