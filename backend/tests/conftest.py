import os

os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from app.deps import get_db
from app.locks.models import NoteLock
from app.main import app
from app.notes.models import Note
from app.notes.service import sweep_schedule
from app.shared.clock import utcnow_plus
from app.shared.db import Base, create_db_engine

SEED = [
    ("Meeting notes", "Discuss architecture"),
    ("Call script", "Intro, value prop, objections"),
    ("To-do", "1) Ship MVP 2) Sleep"),
]


@pytest.fixture(autouse=True)
def _reset_sweep_schedule():
    sweep_schedule.reset()
    yield
    sweep_schedule.reset()


@pytest.fixture
def engine(tmp_path):
    eng = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def note_ids(session_factory):
    with session_factory() as session:
        rows = [Note(title=t, content=c) for t, c in SEED]
        session.add_all(rows)
        session.flush()
        ids = [n.id for n in rows]
        session.commit()
    return ids


@pytest.fixture
def expire_lock(session_factory):
    """Push a lock's expiry into the past using the store clock."""

    def _expire(note_id: int, seconds_ago: int = 60) -> None:
        with session_factory() as session:
            session.execute(
                update(NoteLock)
                .where(NoteLock.note_id == note_id)
                .values(expires_at=utcnow_plus(-seconds_ago))
                .execution_options(synchronize_session=False)
            )
            session.commit()

    return _expire


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
