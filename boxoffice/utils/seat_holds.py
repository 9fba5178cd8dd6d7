from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from boxoffice.core.exceptions import ConflictError
from boxoffice.models.order import Order, Ticket
from boxoffice.models.seat_hold import SeatHold
from boxoffice.utils.promotions import normalize_email


def purge_expired_holds(db: Session, showtime_id: int, now: Optional[datetime] = None) -> int:
    """Delete holds for a showtime whose expiry has passed. Returns the number removed."""
    now = now or datetime.now(timezone.utc)
    return (
        db.query(SeatHold)
        .filter(SeatHold.showtime_id == showtime_id, SeatHold.expires_at < now)
        .delete(synchronize_session="fetch")
    )


def release_seat_holds(db: Session, showtime_id: int, seats: Iterable[str]) -> int:
    """Drop the holds on seats that were just purchased."""
    labels = list(seats)
    if not labels:
        return 0
    return (
        db.query(SeatHold)
        .filter(SeatHold.showtime_id == showtime_id, SeatHold.seat_label.in_(labels))
        .delete(synchronize_session="fetch")
    )


def sold_seats(db: Session, showtime_id: int) -> Set[str]:
    rows = (
        db.query(Ticket.seat_label)
        .join(Order, Order.id == Ticket.order_id)
        .filter(Order.showtime_id == showtime_id, Order.status == "paid")
        .all()
    )
    return {row.seat_label for row in rows}


def held_seats(db: Session, showtime_id: int) -> List[SeatHold]:
    return db.query(SeatHold).filter(SeatHold.showtime_id == showtime_id).all()


def hold_seats(
    db: Session,
    showtime_id: int,
    seats: Iterable[str],
    email: Optional[str],
    minutes: int,
) -> datetime:
    """
    Hold seats for ``minutes``. A buyer may refresh their own holds; seats
    that are sold or held by someone else raise ``ConflictError``.
    Returns the new expiry.
    """
    now = datetime.now(timezone.utc)
    labels = list(dict.fromkeys(seats))
    email = normalize_email(email)

    purge_expired_holds(db, showtime_id, now)

    taken = sold_seats(db, showtime_id).intersection(labels)
    if taken:
        raise ConflictError(f"Seats already sold: {', '.join(sorted(taken))}")

    existing = {
        h.seat_label: h
        for h in held_seats(db, showtime_id)
        if h.seat_label in labels
    }
    foreign = sorted(
        label for label, h in existing.items()
        if not email or normalize_email(h.email) != email
    )
    if foreign:
        raise ConflictError(f"Seats are held by another buyer: {', '.join(foreign)}")

    expires_at = now + timedelta(minutes=minutes)
    for label in labels:
        hold = existing.get(label)
        if hold is not None:
            hold.expires_at = expires_at
        else:
            db.add(SeatHold(
                showtime_id=showtime_id,
                seat_label=label,
                email=email,
                expires_at=expires_at,
            ))
    db.commit()
    return expires_at
