from sqlalchemy import Column, String, DateTime, func, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class SeatHold(Base):
    __tablename__ = "seat_holds"
    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_label", name="uq_seat_holds_showtime_seat"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    seat_label = Column(String(10), nullable=False)
    email = Column(String(255), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    showtime = relationship("Showtime", back_populates="seat_holds")
