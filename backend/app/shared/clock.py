# backend/app/shared/clock.py
"""Store-side clock.

Every expiry decision compares against the database's own notion of "now",
rendered inside the same statement. Timestamps are naive UTC on every backend.
"""
from sqlalchemy import DateTime
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement


class utcnow(FunctionElement):
    type = DateTime()
    inherit_cache = True


class utcnow_plus(FunctionElement):
    """now + N seconds (N may be negative)."""

    type = DateTime()
    # seconds is rendered inline, so statements using it must not be cached
    inherit_cache = False

    def __init__(self, seconds: int):
        self.seconds = int(seconds)
        super().__init__()


@compiles(utcnow)
def _utcnow_default(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


@compiles(utcnow, "sqlite")
def _utcnow_sqlite(element, compiler, **kw):
    return "datetime('now')"


@compiles(utcnow, "postgresql")
def _utcnow_pg(element, compiler, **kw):
    return "TIMEZONE('utc', CURRENT_TIMESTAMP)"


@compiles(utcnow, "mysql")
def _utcnow_mysql(element, compiler, **kw):
    return "UTC_TIMESTAMP()"


@compiles(utcnow_plus)
def _utcnow_plus_default(element, compiler, **kw):
    return "(CURRENT_TIMESTAMP + INTERVAL '%d' SECOND)" % element.seconds


@compiles(utcnow_plus, "sqlite")
def _utcnow_plus_sqlite(element, compiler, **kw):
    return "datetime('now', '%+d seconds')" % element.seconds


@compiles(utcnow_plus, "postgresql")
def _utcnow_plus_pg(element, compiler, **kw):
    return "(TIMEZONE('utc', CURRENT_TIMESTAMP) + make_interval(secs => %d))" % element.seconds


@compiles(utcnow_plus, "mysql")
def _utcnow_plus_mysql(element, compiler, **kw):
    return "DATE_ADD(UTC_TIMESTAMP(), INTERVAL %d SECOND)" % element.seconds
