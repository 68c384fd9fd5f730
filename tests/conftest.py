import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from coachbook.auth.jwt_handler import create_access_token  # noqa: E402
from coachbook.database import Base  # noqa: E402
from coachbook.main import app  # noqa: E402
from coachbook.models.user import User  # noqa: E402
from coachbook.routes.common import get_db  # noqa: E402

ADMIN_EMAIL = 'coach@example.com'
USER_EMAIL = 'athlete@example.com'
OTHER_USER_EMAIL = 'rival@example.com'


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api(session_factory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('coachbook.routes.availability_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr('coachbook.routes.booking_routes.ensure_database_ready', lambda: None)

    session = session_factory()
    session.add(User(email=ADMIN_EMAIL, role='admin'))
    session.add(User(email=USER_EMAIL, role='user'))
    session.commit()
    session.close()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def bearer(email: str) -> dict[str, str]:
    return {'Authorization': f'Bearer {create_access_token(email)}'}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer(ADMIN_EMAIL)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return bearer(USER_EMAIL)


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    return bearer(OTHER_USER_EMAIL)
