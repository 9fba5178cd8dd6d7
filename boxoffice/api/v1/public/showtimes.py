import logging
from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.core.config import settings
from boxoffice.api.deps import require_seat_holds
from boxoffice.models.movie import Movie
from boxoffice.models.showtime import Showtime
from boxoffice.schemas.showtime import (
    ShowtimeEnsure,
    ShowtimeEnsureResponse,
    SeatMapResponse,
    HoldRequest,
    HoldResponse,
    ScheduleDay,
    ScheduleResponse,
)
from boxoffice.utils.schedule import TIME_SLOTS, build_days, build_schedule
from boxoffice.utils.seat_holds import held_seats, hold_seats, purge_expired_holds, sold_seats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


def _get_showtime(db: Session, showtime_id: int) -> Showtime:
    showtime = db.get(Showtime, showtime_id)
    if not showtime:
        raise HTTPException(status_code=404, detail="Showtime not found")
    return showtime


def _find_showtime(db: Session, movie_id: int, starts_at):
    return (
        db.query(Showtime)
        .filter(Showtime.movie_id == movie_id, Showtime.starts_at == starts_at)
        .first()
    )


# ---------------------------------------------------------------------------
# POST /showtimes/ensure: find-or-create a showtime for a movie title
# ---------------------------------------------------------------------------


@router.post("/ensure", response_model=ShowtimeEnsureResponse)
def ensure_showtime(data: ShowtimeEnsure, db: Session = Depends(get_db)):
    """
    Idempotent: the same title + start time always resolves to one showtime.
    The movie is created on the fly when the title is new.
    """
    title = data.title.strip()
    starts_at = data.starts_at
    if starts_at.tzinfo is None:
        starts_at = starts_at.replace(tzinfo=timezone.utc)
    else:
        starts_at = starts_at.astimezone(timezone.utc)

    movie = db.query(Movie).filter(Movie.title == title).order_by(Movie.id).first()
    if not movie:
        movie = Movie(title=title, duration_min=data.duration_min)
        db.add(movie)
        db.flush()

    showtime = _find_showtime(db, movie.id, starts_at)
    if showtime:
        db.commit()
        return ShowtimeEnsureResponse(showtime_id=showtime.id)

    showtime = Showtime(
        movie_id=movie.id,
        theater=data.theater,
        starts_at=starts_at,
        base_price=data.base_price,
    )
    db.add(showtime)
    try:
        db.commit()
    except IntegrityError:
        # Another request created it first
        db.rollback()
        movie = db.query(Movie).filter(Movie.title == title).order_by(Movie.id).first()
        showtime = _find_showtime(db, movie.id, starts_at) if movie else None
        if showtime is None:
            raise
        return ShowtimeEnsureResponse(showtime_id=showtime.id)

    logger.info("Created showtime %s for '%s' at %s", showtime.id, title, starts_at)
    return ShowtimeEnsureResponse(showtime_id=showtime.id)


# ---------------------------------------------------------------------------
# GET /showtimes/schedule: deterministic time grid for the date picker
# ---------------------------------------------------------------------------


@router.get("/schedule", response_model=ScheduleResponse)
def get_schedule(
    movie_id: int = Query(..., alias="movieId"),
    days: int = Query(3, ge=1, le=14),
):
    schedule = build_schedule(movie_id, build_days(days))
    return ScheduleResponse(
        movie_id=movie_id,
        time_slots=list(TIME_SLOTS),
        days=[ScheduleDay(date=d, times=times) for d, times in schedule.items()],
    )


# ---------------------------------------------------------------------------
# Seat map and holds
# ---------------------------------------------------------------------------


@router.get(
    "/{showtime_id}/seats",
    response_model=SeatMapResponse,
    dependencies=[Depends(require_seat_holds)],
)
def get_seat_map(showtime_id: int, db: Session = Depends(get_db)):
    """Sold and currently held seats. Expired holds are purged first."""
    _get_showtime(db, showtime_id)
    purge_expired_holds(db, showtime_id)
    db.commit()
    return SeatMapResponse(
        showtime_id=showtime_id,
        sold=sorted(sold_seats(db, showtime_id)),
        held=sorted(h.seat_label for h in held_seats(db, showtime_id)),
    )


@router.post(
    "/{showtime_id}/holds",
    response_model=HoldResponse,
    dependencies=[Depends(require_seat_holds)],
)
def create_holds(showtime_id: int, data: HoldRequest, db: Session = Depends(get_db)):
    """Hold seats while the buyer pays; checkout releases them."""
    _get_showtime(db, showtime_id)
    expires_at = hold_seats(
        db, showtime_id, data.seats, data.email, settings.SEAT_HOLD_MINUTES
    )
    return HoldResponse(
        showtime_id=showtime_id,
        seats=list(dict.fromkeys(data.seats)),
        expires_at=expires_at,
    )
