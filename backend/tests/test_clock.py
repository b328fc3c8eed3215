from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql, sqlite

from app.shared.clock import utcnow, utcnow_plus


def _sql(expr, dialect):
    return str(select(expr).compile(dialect=dialect))


def test_now_is_rendered_by_the_store():
    assert "datetime('now')" in _sql(utcnow(), sqlite.dialect())
    assert "UTC_TIMESTAMP()" in _sql(utcnow(), mysql.dialect())
    assert "TIMEZONE('utc', CURRENT_TIMESTAMP)" in _sql(utcnow(), postgresql.dialect())


def test_offsets_keep_their_sign():
    assert "datetime('now', '+120 seconds')" in _sql(utcnow_plus(120), sqlite.dialect())
    assert "datetime('now', '-30 seconds')" in _sql(utcnow_plus(-30), sqlite.dialect())
    assert "INTERVAL -30 SECOND" in _sql(utcnow_plus(-30), mysql.dialect())


def test_distinct_offsets_are_not_conflated(engine):
    with engine.connect() as conn:
        later = conn.execute(select(utcnow_plus(120))).scalar_one()
        earlier = conn.execute(select(utcnow_plus(-120))).scalar_one()
    assert later > earlier
