from boxoffice.db.session import Base
from boxoffice.models.user import User
from boxoffice.models.movie import Movie
from boxoffice.models.showtime import Showtime
from boxoffice.models.order import Order, Ticket
from boxoffice.models.promotion import Promotion, PromotionRedemption
from boxoffice.models.seat_hold import SeatHold
