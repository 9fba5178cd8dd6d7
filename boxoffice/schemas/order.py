from typing import Optional, List
from pydantic import Field, field_validator
from datetime import datetime

from boxoffice.schemas.common import (
    CamelModel,
    OkResponse,
    MAX_AMOUNT,
    MAX_SEATS_PER_ORDER,
    clean_seat_labels,
)


# POST /payments/confirm
class PaymentConfirm(CamelModel):
    ref_code: str
    email: Optional[str] = None
    showtime_id: int
    seats: List[str] = Field(min_length=1, max_length=MAX_SEATS_PER_ORDER)
    price_per_seat: float = Field(gt=0, le=MAX_AMOUNT, allow_inf_nan=False)
    promo_code: Optional[str] = None

    @field_validator("ref_code")
    @classmethod
    def ref_code_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Missing refCode")
        return v

    @field_validator("email", "promo_code", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("seats")
    @classmethod
    def strip_seat_labels(cls, v):
        labels = clean_seat_labels(v)
        # one ticket per seat
        if len(set(labels)) != len(labels):
            raise ValueError("Duplicate seat labels")
        return labels


class PaymentConfirmResponse(OkResponse):
    order_id: int
    email_sent: bool


# Nested objects for GET /users/{email}/tickets
class TicketMovie(CamelModel):
    id: int
    title: str
    duration_min: int
    rating: Optional[str] = None


class TicketShowtime(CamelModel):
    id: int
    theater: str
    starts_at: datetime
    base_price: float
    movie: Optional[TicketMovie] = None


class Ticket(CamelModel):
    id: int
    seat_label: str
    price: float
    created_at: Optional[datetime] = None


class Order(CamelModel):
    order_id: int
    ref_code: str
    status: str
    total_amount: float
    promo_code: Optional[str] = None
    discount_amt: Optional[float] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    buyer_email: Optional[str] = None
    showtime: Optional[TicketShowtime] = None
    tickets: List[Ticket] = []


class OrderListResponse(OkResponse):
    orders: List[Order]
