# pylint: disable=redefined-outer-name
import os
from datetime import datetime, timedelta, timezone

# Keep the default unit of work off PostgreSQL while testing
os.environ.setdefault("DB_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, clear_mappers
from sqlalchemy.pool import StaticPool

from expediente.adapters import orm
from expediente.domain.model import AccessToken, Expediente
from expediente.service_layer.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
def sqlite_session_factory():
    """Create SQLite in-memory database for fast testing."""
    # one shared connection, the API runs sync endpoints in a threadpool
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    orm.metadata.create_all(engine)
    orm.start_mappers()

    yield sessionmaker(bind=engine)

    clear_mappers()
    engine.dispose()


@pytest.fixture
def uow(sqlite_session_factory):
    return SqlAlchemyUnitOfWork(session_factory=sqlite_session_factory)


@pytest.fixture
def add_expediente(sqlite_session_factory):
    """Insert an expediente, catalog fields default to empty."""
    def _add(expediente_id="EXP-001", **values):
        session = sqlite_session_factory()
        session.add(Expediente(expediente_id, **values))
        session.commit()
        session.close()
        return expediente_id

    return _add


@pytest.fixture
def add_token(sqlite_session_factory):
    """Insert a token; valid for a day unless told otherwise."""
    def _add(token="tok-valid", expediente_id="EXP-001", expires_at=None, used_at=None):
        if expires_at is None:
            expires_at = datetime.now(timezone.utc) + timedelta(days=1)
        session = sqlite_session_factory()
        session.add(AccessToken(token=token, expediente_id=expediente_id, expires_at=expires_at, used_at=used_at))
        session.commit()
        session.close()
        return token

    return _add


@pytest.fixture
def load_expediente(sqlite_session_factory):
    """Read back an expediente as a plain dict of its catalog values."""
    from expediente.domain import fields

    def _load(expediente_id="EXP-001"):
        session = sqlite_session_factory()
        expediente = session.query(Expediente).filter_by(id_=expediente_id).one()
        values = {spec.name: expediente.value_of(spec.name) for spec in fields.FIELDS}
        session.close()
        return values

    return _load


@pytest.fixture
def load_token(sqlite_session_factory):
    def _load(token="tok-valid"):
        session = sqlite_session_factory()
        access_token = session.query(AccessToken).filter_by(token=token).one()
        session.expunge(access_token)
        session.close()
        return access_token

    return _load


@pytest.fixture
def client(sqlite_session_factory):
    """FastAPI test client bound to the SQLite unit of work (startup hooks not run)."""
    from fastapi.testclient import TestClient
    from expediente.entrypoints.expediente_api import app, get_uow

    app.dependency_overrides[get_uow] = lambda: SqlAlchemyUnitOfWork(session_factory=sqlite_session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()
