# backend/app/locks/service.py
"""Note lock lifecycle: acquire/renew/takeover, release, validate.

Functions here run inside the caller's transaction and never commit. All
expiry checks are evaluated by the store (see ``shared.clock``), never
against a Python-side timestamp.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import case, delete, or_, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..shared.clock import utcnow, utcnow_plus
from .models import NoteLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockRow:
    note_id: int
    locked_by: str
    locked_at: datetime
    expires_at: datetime
    is_expired: bool


@dataclass(frozen=True)
class Granted:
    note_id: int
    holder: str
    acquired_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Denied:
    holder: Optional[str]
    expires_at: Optional[datetime]


class ReleaseOutcome(str, enum.Enum):
    RELEASED = "released"
    FORBIDDEN = "forbidden"
    NOOP = "noop"


@dataclass(frozen=True)
class Valid:
    pass


@dataclass(frozen=True)
class Invalid:
    # only set when an unexpired lock is held by someone else
    holder: Optional[str] = None
    expires_at: Optional[datetime] = None


AcquireResult = Union[Granted, Denied]
ValidateResult = Union[Valid, Invalid]


def read_lock(db: Session, note_id: int, for_update: bool = False) -> Optional[LockRow]:
    q = select(
        NoteLock.note_id,
        NoteLock.locked_by,
        NoteLock.locked_at,
        NoteLock.expires_at,
        (NoteLock.expires_at <= utcnow()).label("is_expired"),
    ).where(NoteLock.note_id == note_id)
    if for_update:
        q = q.with_for_update()
    r = db.execute(q).one_or_none()
    if r is None:
        return None
    return LockRow(
        note_id=r.note_id,
        locked_by=r.locked_by,
        locked_at=r.locked_at,
        expires_at=r.expires_at,
        is_expired=bool(r.is_expired),
    )


def _upsert_statement(dialect: str, note_id: int, holder: str, ttl_seconds: int):
    values = dict(
        note_id=note_id,
        locked_by=holder,
        locked_at=utcnow(),
        expires_at=utcnow_plus(ttl_seconds),
    )
    expired = NoteLock.expires_at <= utcnow()

    if dialect == "mysql":
        stmt = mysql_insert(NoteLock).values(**values)
        take = or_(expired, NoteLock.locked_by == stmt.inserted.locked_by)
        # MySQL applies assignments left to right; expires_at must stay last
        # so the CASE predicates above still see the old expiry.
        return stmt.on_duplicate_key_update(
            [
                ("locked_by", case((take, stmt.inserted.locked_by), else_=NoteLock.locked_by)),
                ("locked_at", case((take, stmt.inserted.locked_at), else_=NoteLock.locked_at)),
                ("expires_at", case((take, stmt.inserted.expires_at), else_=NoteLock.expires_at)),
            ]
        )

    if dialect == "sqlite":
        stmt = sqlite_insert(NoteLock).values(**values)
    elif dialect == "postgresql":
        stmt = pg_insert(NoteLock).values(**values)
    else:
        raise ValueError(f"lock upsert not supported on dialect {dialect!r}")

    return stmt.on_conflict_do_update(
        index_elements=[NoteLock.note_id],
        set_={
            "locked_by": stmt.excluded.locked_by,
            "locked_at": stmt.excluded.locked_at,
            "expires_at": stmt.excluded.expires_at,
        },
        # takeover if expired, renew if same holder, otherwise leave the row alone
        where=or_(expired, NoteLock.locked_by == stmt.excluded.locked_by),
    )


def acquire_or_renew(db: Session, note_id: int, holder: str, ttl_seconds: int) -> AcquireResult:
    """Insert, take over, or renew the lock on ``note_id`` in one statement.

    The outcome is read back afterwards: whoever holds the row now is the
    winner, regardless of whether this caller's write changed anything.
    """
    dialect = db.get_bind().dialect.name
    db.execute(_upsert_statement(dialect, note_id, holder, ttl_seconds))

    row = read_lock(db, note_id)
    if row is None:
        # note deleted underneath us (cascade)
        return Denied(holder=None, expires_at=None)

    if row.locked_by == holder:
        logger.debug("lock granted note=%s holder=%s until=%s", note_id, holder, row.expires_at)
        return Granted(
            note_id=row.note_id,
            holder=row.locked_by,
            acquired_at=row.locked_at,
            expires_at=row.expires_at,
        )

    logger.debug("lock denied note=%s holder=%s held_by=%s", note_id, holder, row.locked_by)
    return Denied(holder=row.locked_by, expires_at=row.expires_at)


def purge_expired_lock(db: Session, note_id: int) -> None:
    """Delete the lock on ``note_id`` if it has expired. Failures are logged, not raised."""
    try:
        with db.begin_nested():
            db.execute(
                delete(NoteLock)
                .where(NoteLock.note_id == note_id, NoteLock.expires_at <= utcnow())
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError:
        logger.warning("expired lock cleanup failed for note %s", note_id, exc_info=True)


def sweep_expired_locks(db: Session) -> int:
    """Delete every expired lock row. Returns the number of rows removed."""
    result = db.execute(
        delete(NoteLock)
        .where(NoteLock.expires_at <= utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def release_lock(db: Session, note_id: int, holder: str) -> ReleaseOutcome:
    row = read_lock(db, note_id, for_update=True)
    if row is None:
        return ReleaseOutcome.NOOP

    if row.is_expired:
        # an expired lock belongs to nobody
        purge_expired_lock(db, note_id)
        return ReleaseOutcome.NOOP

    if row.locked_by != holder:
        logger.warning(
            "release refused note=%s caller=%s held_by=%s", note_id, holder, row.locked_by
        )
        return ReleaseOutcome.FORBIDDEN

    db.execute(
        delete(NoteLock)
        .where(NoteLock.note_id == note_id, NoteLock.locked_by == holder)
        .execution_options(synchronize_session=False)
    )
    logger.debug("lock released note=%s holder=%s", note_id, holder)
    return ReleaseOutcome.RELEASED


def validate_lock(
    db: Session, note_id: int, holder: str, for_update: bool = False
) -> ValidateResult:
    """Check that ``holder`` owns an unexpired lock on ``note_id``.

    With ``for_update`` the lock row stays locked until the surrounding
    transaction ends, so it cannot be taken over before the caller commits.
    """
    row = read_lock(db, note_id, for_update=for_update)
    if row is None:
        return Invalid()

    if row.is_expired:
        purge_expired_lock(db, note_id)
        return Invalid()

    if row.locked_by != holder:
        return Invalid(holder=row.locked_by, expires_at=row.expires_at)

    return Valid()
