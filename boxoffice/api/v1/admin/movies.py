from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.api.deps import get_current_admin_user
from boxoffice.models.movie import Movie
from boxoffice.schemas.common import OkResponse
from boxoffice.schemas.movie import (
    MovieCreate,
    MovieUpdate,
    MovieResponse,
    MovieListResponse,
)

router = APIRouter(
    prefix="/admin/movies",
    tags=["Admin - Movies"],
    dependencies=[Depends(get_current_admin_user)],
)

# Blank strings from the admin form clear these columns
NULLABLE_TEXT_FIELDS = ("rating", "poster_url", "overview")


def _get_movie(db: Session, id: int) -> Movie:
    movie = db.get(Movie, id)
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@router.get("", response_model=MovieListResponse)
def list_movies(db: Session = Depends(get_db)):
    """Every movie, active or not, newest first."""
    movies = db.query(Movie).order_by(Movie.created_at.desc(), Movie.id.desc()).all()
    return MovieListResponse(movies=movies)


@router.post("", response_model=MovieResponse)
def create_movie(data: MovieCreate, db: Session = Depends(get_db)):
    title = data.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")

    values = data.model_dump()
    values["title"] = title
    for field in NULLABLE_TEXT_FIELDS:
        if values[field] == "":
            values[field] = None

    movie = Movie(**values)
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return MovieResponse(movie=movie)


@router.patch("/{id}", response_model=MovieResponse)
def update_movie(id: int, data: MovieUpdate, db: Session = Depends(get_db)):
    movie = _get_movie(db, id)

    changes = data.model_dump(exclude_unset=True)
    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")
        changes["title"] = title
    for field in NULLABLE_TEXT_FIELDS:
        if changes.get(field) == "":
            changes[field] = None
    # null for a NOT NULL column means "leave as is"
    for field in ("duration_min", "active"):
        if field in changes and changes[field] is None:
            del changes[field]

    for field, value in changes.items():
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    return MovieResponse(movie=movie)


@router.post("/{id}/toggle", response_model=MovieResponse)
def toggle_movie(id: int, db: Session = Depends(get_db)):
    """Flip the active flag."""
    movie = _get_movie(db, id)
    movie.active = not movie.active
    db.commit()
    db.refresh(movie)
    return MovieResponse(movie=movie)


@router.delete("/{id}", response_model=OkResponse)
def delete_movie(id: int, db: Session = Depends(get_db)):
    """Soft delete: the movie is hidden from the public catalog, showtimes and orders stay."""
    movie = _get_movie(db, id)
    movie.active = False
    db.commit()
    return OkResponse()
