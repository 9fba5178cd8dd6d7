from boxoffice.schemas.common import CamelModel, OkResponse, ErrorResponse
from boxoffice.schemas.user import (
    User, UserCreate, AdminCreate, LoginRequest, AuthResponse, MeResponse, RoleResponse,
)
from boxoffice.schemas.movie import (
    Movie, MovieCreate, MovieUpdate, MovieResponse, MovieListResponse,
)
from boxoffice.schemas.showtime import (
    ShowtimeEnsure, ShowtimeEnsureResponse, SeatMapResponse,
    HoldRequest, HoldResponse, ScheduleDay, ScheduleResponse,
)
from boxoffice.schemas.order import (
    PaymentConfirm, PaymentConfirmResponse, Order, Ticket, OrderListResponse,
)
from boxoffice.schemas.promotion import (
    Promotion, PromotionCreate, PromotionUpdate, PromotionWithStats,
    PromotionResponse, PromotionListResponse, PromotionPreviewResponse,
    PromotionApply, AppliedPromotion, PromotionApplyResponse,
)
