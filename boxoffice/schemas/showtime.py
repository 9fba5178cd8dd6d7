from typing import Optional, List
from pydantic import Field, field_validator
from datetime import date, datetime

from boxoffice.schemas.common import (
    CamelModel,
    OkResponse,
    MAX_AMOUNT,
    MAX_SEATS_PER_ORDER,
    clean_seat_labels,
)


# POST /showtimes/ensure
class ShowtimeEnsure(CamelModel):
    title: str = Field(min_length=1)
    starts_at: datetime
    theater: str = "Theater 1"
    base_price: float = Field(default=120, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    duration_min: int = Field(default=120, gt=0)


class ShowtimeEnsureResponse(OkResponse):
    showtime_id: int


# GET /showtimes/{id}/seats
class SeatMapResponse(OkResponse):
    showtime_id: int
    sold: List[str]
    held: List[str]


# POST /showtimes/{id}/holds
class HoldRequest(CamelModel):
    seats: List[str] = Field(min_length=1, max_length=MAX_SEATS_PER_ORDER)
    email: Optional[str] = None

    @field_validator("seats")
    @classmethod
    def strip_seat_labels(cls, v):
        return clean_seat_labels(v)


class HoldResponse(OkResponse):
    showtime_id: int
    seats: List[str]
    expires_at: datetime


# GET /showtimes/schedule
class ScheduleDay(CamelModel):
    date: date
    times: List[str]


class ScheduleResponse(OkResponse):
    movie_id: int
    time_slots: List[str]
    days: List[ScheduleDay]
