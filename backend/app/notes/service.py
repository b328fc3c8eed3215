# backend/app/notes/service.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..locks.models import NoteLock
from ..locks.service import Invalid, sweep_expired_locks, validate_lock
from ..shared.clock import utcnow
from .models import Note

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "content")


@dataclass(frozen=True)
class Updated:
    pass


@dataclass(frozen=True)
class LockInvalid:
    holder: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class NoteNotFound:
    pass


UpdateResult = Union[Updated, LockInvalid, NoteNotFound]


@dataclass(frozen=True)
class LockView:
    is_locked: bool
    locked_by: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class NoteView:
    id: int
    title: str
    content: str
    updated_at: datetime
    lock: LockView


def note_exists(db: Session, note_id: int) -> bool:
    return db.scalar(select(Note.id).where(Note.id == note_id)) is not None


def update_note(db: Session, note_id: int, holder: str, patch: dict[str, Any]) -> UpdateResult:
    """Apply ``patch`` to a note only if ``holder`` owns a live lock on it.

    Lock check and write share one transaction; every non-Updated outcome
    and every error rolls it back.
    """
    values = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS and v is not None}
    try:
        check = validate_lock(db, note_id, holder, for_update=True)
        if isinstance(check, Invalid):
            db.rollback()
            return LockInvalid(holder=check.holder, expires_at=check.expires_at)

        result = db.execute(
            update(Note)
            .where(Note.id == note_id)
            .values(**values, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            return NoteNotFound()

        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.debug("note %s updated by %s fields=%s", note_id, holder, sorted(values))
    return Updated()


# ------------------------
# listing projection
# ------------------------
class SweepSchedule:
    """Throttles the opportunistic expired-lock sweep done by listings."""

    def __init__(self):
        self._last: Optional[float] = None

    def due(self, interval: float) -> bool:
        now = time.monotonic()
        if self._last is not None and now - self._last < interval:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None


sweep_schedule = SweepSchedule()


def sweep_if_due(db: Session, interval: float) -> None:
    if not sweep_schedule.due(interval):
        return
    try:
        with db.begin_nested():
            n = sweep_expired_locks(db)
        if n:
            logger.debug("swept %d expired lock(s)", n)
    except SQLAlchemyError:
        logger.warning("expired lock sweep failed", exc_info=True)


def _lock_columns():
    active = NoteLock.expires_at > utcnow()
    return (
        NoteLock.locked_by.label("locked_by"),
        NoteLock.expires_at.label("expires_at"),
        active.label("is_locked"),
    )


def _to_lock_view(r) -> LockView:
    if not r.is_locked:
        return LockView(is_locked=False)
    return LockView(is_locked=True, locked_by=r.locked_by, expires_at=r.expires_at)


def list_notes(db: Session, sweep_interval: float = 0) -> list[NoteView]:
    sweep_if_due(db, sweep_interval)

    q = (
        select(Note.id, Note.title, Note.content, Note.updated_at, *_lock_columns())
        .select_from(Note)
        .join(NoteLock, NoteLock.note_id == Note.id, isouter=True)
        .order_by(Note.id.asc())
    )
    return [
        NoteView(
            id=r.id,
            title=r.title,
            content=r.content,
            updated_at=r.updated_at,
            lock=_to_lock_view(r),
        )
        for r in db.execute(q).all()
    ]


def get_note_lock(db: Session, note_id: int) -> Optional[LockView]:
    """Lock projection for a single note, ``None`` if the note doesn't exist."""
    r = db.execute(
        select(Note.id, *_lock_columns())
        .select_from(Note)
        .join(NoteLock, NoteLock.note_id == Note.id, isouter=True)
        .where(Note.id == note_id)
    ).one_or_none()
    if r is None:
        return None
    return _to_lock_view(r)
