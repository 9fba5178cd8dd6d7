from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.models.movie import Movie
from boxoffice.schemas.movie import MovieListResponse

router = APIRouter(prefix="/movies", tags=["Movies"])


def _list_movies(db: Session, only_active: bool, q: Optional[str], limit: int):
    query = db.query(Movie)
    if only_active:
        query = query.filter(Movie.active == True)  # noqa: E712
    q = (q or "").strip()
    if q:
        query = query.filter(
            or_(Movie.title.ilike(f"%{q}%"), Movie.rating.ilike(f"%{q}%"))
        )
    return query.order_by(Movie.created_at.desc(), Movie.id.desc()).limit(limit).all()


@router.get("", response_model=MovieListResponse)
def list_movies(
    active: bool = Query(True, description="false also lists inactive movies"),
    q: Optional[str] = Query(None, description="Matches title or rating"),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Public movie catalog, newest first."""
    return MovieListResponse(movies=_list_movies(db, active, q, limit))


@router.get("/search", response_model=MovieListResponse)
def search_movies(
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Active movies whose title or rating contains the query."""
    return MovieListResponse(movies=_list_movies(db, True, q, limit))
