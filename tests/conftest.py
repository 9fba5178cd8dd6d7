import os

# Keep the app's own engine off PostgreSQL while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from boxoffice.main import app
from boxoffice.api.deps import get_capabilities, get_mailer
from boxoffice.core.security import create_access_token, get_password_hash
from boxoffice.db.base import Base
from boxoffice.db.capabilities import SchemaCapabilities
from boxoffice.db.session import get_db
from boxoffice.models import Movie, Promotion, Showtime, User


class FakeMailer:
    """Records the order ids it was asked to email; can be told to fail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_ticket_email(self, db, order_id):
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append(order_id)
        return True

    def close(self):
        pass


# -- Fixtures -----------------------------------------------------------------


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def capabilities():
    return SchemaCapabilities(promotions=True, seat_holds=True)


@pytest.fixture
def client(session_factory, mailer, capabilities):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_capabilities] = lambda: capabilities
    yield TestClient(app)
    app.dependency_overrides.clear()


# -- Factories ----------------------------------------------------------------


def make_user(db, email="buyer@example.com", password="secret-pass", role="USER"):
    user = User(
        email=email,
        password_hash=get_password_hash(password),
        display_name=email.split("@")[0],
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def make_movie(db, title="Dune: Part Two", **kwargs):
    movie = Movie(title=title, duration_min=kwargs.pop("duration_min", 166), **kwargs)
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


def make_showtime(db, movie=None, starts_at=None, base_price=150):
    movie = movie or make_movie(db)
    showtime = Showtime(
        movie_id=movie.id,
        theater="Theater 1",
        starts_at=starts_at or datetime(2030, 1, 1, 19, 0, tzinfo=timezone.utc),
        base_price=base_price,
    )
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return showtime


def make_promotion(db, code="SAVE10", type="PERCENT", value=10, **kwargs):
    promotion = Promotion(code=code, type=type, value=value, **kwargs)
    db.add(promotion)
    db.commit()
    db.refresh(promotion)
    return promotion


@pytest.fixture
def admin(db):
    return make_user(db, email="admin@example.com", role="ADMIN")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def showtime(db):
    return make_showtime(db)


@pytest.fixture
def yesterday():
    return datetime.now(timezone.utc) - timedelta(days=1)


@pytest.fixture
def tomorrow():
    return datetime.now(timezone.utc) + timedelta(days=1)
