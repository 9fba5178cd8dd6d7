import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boxoffice.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from boxoffice.core.security import decode_token
from boxoffice.db.capabilities import SchemaCapabilities
from boxoffice.db.session import get_db
from boxoffice.models.user import User
from boxoffice.utils.mailer import TicketMailer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_role(db: Session, user_id: int) -> str:
    """Stored role for a user id, "USER" when the user or role is missing."""
    role = db.query(User.role).filter(User.id == user_id).scalar()
    return (role or "USER").upper()


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    claims = decode_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError()
    return claims


def get_current_user(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, int(claims["uid"]))
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_current_admin_user(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> int:
    """
    Gate for admin-only routes. Needs a valid token (401 otherwise) and
    fails closed with 403 on a non-admin role or any lookup error.
    Returns the admin's user id.
    """
    try:
        role = get_user_role(db, int(claims["uid"]))
    except (SQLAlchemyError, TypeError, ValueError):
        logger.exception("Role lookup failed; denying admin access.")
        raise PermissionDeniedError()
    if role != "ADMIN":
        raise PermissionDeniedError()
    return int(claims["uid"])


def get_mailer(request: Request) -> TicketMailer:
    return request.app.state.mailer


def get_capabilities(request: Request) -> SchemaCapabilities:
    return request.app.state.capabilities


def require_promotions(capabilities: SchemaCapabilities = Depends(get_capabilities)) -> None:
    if not capabilities.promotions:
        raise NotFoundError("Promotions not enabled")


def require_seat_holds(capabilities: SchemaCapabilities = Depends(get_capabilities)) -> None:
    if not capabilities.seat_holds:
        raise NotFoundError("Seat holds not enabled")
