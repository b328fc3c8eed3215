# backend/app/notes/router.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..deps import get_db, session_id
from ..locks.router import locked_response
from ..locks.schemas import LockHeldOut, LockStateOut
from ..shared.config import settings
from . import schemas as s
from .service import LockInvalid, NoteNotFound, list_notes, update_note

router = APIRouter(prefix=f"{settings.API_PREFIX}/notes", tags=["notes"])


@router.get("", response_model=list[s.NoteOut])
def get_notes(db: Session = Depends(get_db)):
    views = list_notes(db, sweep_interval=settings.LOCK_SWEEP_INTERVAL_SECONDS)
    db.commit()  # keeps the sweep
    return [
        s.NoteOut(
            id=v.id,
            title=v.title,
            content=v.content,
            updated_at=v.updated_at,
            lock=LockStateOut(
                is_locked=v.lock.is_locked,
                locked_by=v.lock.locked_by,
                expires_at=v.lock.expires_at,
            ),
        )
        for v in views
    ]


@router.put("/{note_id}", responses={423: {"model": LockHeldOut}})
def put_note(
    note_id: int,
    payload: s.NoteUpdate,
    db: Session = Depends(get_db),
    holder: str = Depends(session_id),
):
    patch = payload.model_dump(exclude_none=True)
    if not patch:
        raise HTTPException(400, "Nothing to update")

    res = update_note(db, note_id, holder, patch)
    if isinstance(res, LockInvalid):
        return locked_response(res.holder, res.expires_at)
    if isinstance(res, NoteNotFound):
        raise HTTPException(404, "Note not found")
    return {"ok": True}
