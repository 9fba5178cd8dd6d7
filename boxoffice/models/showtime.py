from sqlalchemy import Column, String, DateTime, DECIMAL, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class Showtime(Base):
    __tablename__ = "showtimes"
    __table_args__ = (
        UniqueConstraint("movie_id", "starts_at", name="uq_showtimes_movie_starts_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False, index=True)
    theater = Column(String(100), nullable=False, default="Theater 1")
    starts_at = Column(DateTime(timezone=True), nullable=False)
    base_price = Column(DECIMAL(10, 2), nullable=False, default=120)

    movie = relationship("Movie", back_populates="showtimes")
    orders = relationship("Order", back_populates="showtime")
    seat_holds = relationship("SeatHold", back_populates="showtime", cascade="all, delete-orphan")
