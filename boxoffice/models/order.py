from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ref_code = Column(String(64), unique=True, nullable=False, index=True) # idempotency key
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    buyer_email = Column(String(255), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="paid")
    total_amount = Column(DECIMAL(10, 2), nullable=False)
    promo_code = Column(String(64), nullable=True)
    discount_amt = Column(DECIMAL(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    paid_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="orders")
    showtime = relationship("Showtime", back_populates="orders")
    tickets = relationship("Ticket", back_populates="order", cascade="all, delete-orphan")

class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    seat_label = Column(String(10), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="tickets")
