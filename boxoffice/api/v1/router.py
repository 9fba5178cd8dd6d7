from fastapi import APIRouter

# Auth
from boxoffice.api.v1.public.auth import router as auth_router

# Public: users & their tickets
from boxoffice.api.v1.public.users import router as users_router

# Public: catalog & showtimes
from boxoffice.api.v1.public.movies import router as movies_router
from boxoffice.api.v1.public.showtimes import router as showtimes_router

# Public: promotions & checkout
from boxoffice.api.v1.public.promotions import router as promotions_router
from boxoffice.api.v1.public.payments import router as payments_router

# Admin
from boxoffice.api.v1.admin.movies import router as admin_movies_router
from boxoffice.api.v1.admin.promotions import router as admin_promotions_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public ---
api_router.include_router(users_router)
api_router.include_router(movies_router)
api_router.include_router(showtimes_router)
api_router.include_router(promotions_router)
api_router.include_router(payments_router)

# --- Admin ---
api_router.include_router(admin_movies_router)
api_router.include_router(admin_promotions_router)
