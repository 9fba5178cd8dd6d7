from typing import Optional, List
from pydantic import Field
from datetime import datetime

from boxoffice.schemas.common import CamelModel, OkResponse


class MovieCreate(CamelModel):
    title: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    rating: Optional[str] = None
    poster_url: Optional[str] = None
    overview: Optional[str] = None
    active: bool = True


# Admin PATCH: only fields that were sent are applied
class MovieUpdate(CamelModel):
    title: Optional[str] = None
    duration_min: Optional[int] = Field(default=None, gt=0)
    rating: Optional[str] = None
    poster_url: Optional[str] = None
    overview: Optional[str] = None
    active: Optional[bool] = None


class Movie(CamelModel):
    id: int
    title: str
    duration_min: int
    rating: Optional[str] = None
    poster_url: Optional[str] = None
    overview: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None


class MovieResponse(OkResponse):
    movie: Movie


class MovieListResponse(OkResponse):
    movies: List[Movie]
