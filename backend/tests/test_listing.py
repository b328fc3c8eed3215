"""Unit tests for the listing projection in app/notes/service.py."""

from sqlalchemy import func, select

from app.locks.models import NoteLock
from app.locks.service import acquire_or_renew
from app.notes.service import LockView, SweepSchedule, get_note_lock, list_notes


def _acquire(db, note_id, holder):
    res = acquire_or_renew(db, note_id, holder, 120)
    db.commit()
    return res


def _lock_rows(db):
    n = db.scalar(select(func.count()).select_from(NoteLock))
    db.commit()
    return n


def _list(db, interval=0):
    views = list_notes(db, sweep_interval=interval)
    db.commit()
    return views


class TestListNotes:
    def test_unlocked_notes(self, db, note_ids):
        views = _list(db)

        assert [v.id for v in views] == note_ids
        assert all(v.lock == LockView(is_locked=False) for v in views)

    def test_locked_note_shows_holder(self, db, note_ids):
        granted = _acquire(db, note_ids[1], "A")

        views = {v.id: v for v in _list(db)}

        assert views[note_ids[1]].lock == LockView(
            is_locked=True, locked_by="A", expires_at=granted.expires_at
        )
        assert views[note_ids[0]].lock.is_locked is False

    def test_sweep_deletes_expired_rows(self, db, note_ids, expire_lock):
        _acquire(db, note_ids[0], "A")
        _acquire(db, note_ids[1], "B")
        expire_lock(note_ids[0])

        views = {v.id: v for v in _list(db)}

        assert views[note_ids[0]].lock == LockView(is_locked=False)
        assert _lock_rows(db) == 1

    def test_expired_lock_hidden_even_without_sweep(self, db, note_ids, expire_lock):
        _list(db, interval=3600)  # consumes the sweep slot
        _acquire(db, note_ids[0], "A")
        expire_lock(note_ids[0])

        views = {v.id: v for v in _list(db, interval=3600)}

        assert views[note_ids[0]].lock == LockView(is_locked=False)
        assert _lock_rows(db) == 1


class TestGetNoteLock:
    def test_unknown_note(self, db, note_ids):
        assert get_note_lock(db, 999) is None

    def test_locked(self, db, note_ids):
        _acquire(db, note_ids[2], "A")
        view = get_note_lock(db, note_ids[2])
        db.commit()
        assert view.is_locked is True
        assert view.locked_by == "A"


class TestSweepSchedule:
    def test_zero_interval_is_always_due(self):
        sched = SweepSchedule()
        assert sched.due(0)
        assert sched.due(0)

    def test_throttles_within_interval(self):
        sched = SweepSchedule()
        assert sched.due(60)
        assert not sched.due(60)
        sched.reset()
        assert sched.due(60)
