import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException
from boxoffice.db.init_db import create_database
from boxoffice.db.base import Base
from boxoffice.db.session import engine
from boxoffice.db.capabilities import detect_capabilities
from boxoffice.core.config import settings
from boxoffice.core.exceptions import AppError
from boxoffice.schemas.common import ErrorResponse
from boxoffice.api.v1.router import api_router
from boxoffice.utils.mailer import TicketMailer

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure DB exists, create tables, resolve optional features once
    create_database()
    Base.metadata.create_all(bind=engine)
    app.state.capabilities = detect_capabilities(engine, settings)
    app.state.mailer = TicketMailer(settings)
    yield

    # Shutdown: release the SMTP connection and the pool
    app.state.mailer.close()
    engine.dispose()


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ---------------------------------------------------------------------------
# Error envelope: every failure is {"ok": false, "error": "..."}
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message},
        headers=headers,
    )


def _describe_validation_error(error: dict) -> str:
    message = str(error.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    return f"{'.'.join(loc)}: {message}" if loc else message


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = _describe_validation_error(errors[0]) if errors else "Invalid request"
    return _error(400, message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(500, str(exc) or exc.__class__.__name__)


# Documents the error envelope on every route
ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409)}

app.include_router(api_router, prefix=settings.API_PREFIX, responses=ERROR_RESPONSES)

@app.get(f"{settings.API_PREFIX}/health")
def health():
    return {"ok": True, "service": "boxoffice"}
