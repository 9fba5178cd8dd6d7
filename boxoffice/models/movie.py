from sqlalchemy import Column, String, Boolean, DateTime, func, Text, Integer
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    duration_min = Column(Integer, nullable=False, default=120)
    rating = Column(String(20), nullable=True) # PG-13, R, ...
    poster_url = Column(Text, nullable=True)
    overview = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    showtimes = relationship("Showtime", back_populates="movie")
