# backend/app/locks/router.py
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..deps import get_db, session_id
from ..notes.service import get_note_lock, note_exists
from ..shared.config import settings
from .schemas import LockHeldOut, LockOut, LockStateOut
from .service import Denied, ReleaseOutcome, acquire_or_renew, release_lock

router = APIRouter(prefix=f"{settings.API_PREFIX}/notes", tags=["locks"])


def locked_response(holder, expires_at) -> JSONResponse:
    body = LockHeldOut(locked_by=holder, expires_at=expires_at)
    return JSONResponse(status_code=423, content=body.model_dump(mode="json", by_alias=True))


@router.get("/{note_id}/lock", response_model=LockStateOut)
def get_lock(note_id: int, db: Session = Depends(get_db)):
    view = get_note_lock(db, note_id)
    if view is None:
        raise HTTPException(404, "Note not found")
    return LockStateOut(is_locked=view.is_locked, locked_by=view.locked_by, expires_at=view.expires_at)


@router.post(
    "/{note_id}/lock", response_model=LockOut, responses={423: {"model": LockHeldOut}}
)
def acquire_lock(note_id: int, db: Session = Depends(get_db), holder: str = Depends(session_id)):
    """Acquire, renew (same holder) or take over (expired) the note's lock."""
    if not note_exists(db, note_id):
        db.rollback()
        raise HTTPException(404, "Note not found")

    res = acquire_or_renew(db, note_id, holder, settings.LOCK_TTL_SECONDS)
    db.commit()

    if isinstance(res, Denied):
        return locked_response(res.holder, res.expires_at)
    return LockOut(
        note_id=res.note_id,
        locked_by=res.holder,
        locked_at=res.acquired_at,
        expires_at=res.expires_at,
    )


@router.delete("/{note_id}/lock", status_code=204, responses={403: {"description": "not holder"}})
def release(note_id: int, db: Session = Depends(get_db), holder: str = Depends(session_id)):
    outcome = release_lock(db, note_id, holder)
    if outcome is ReleaseOutcome.FORBIDDEN:
        db.rollback()
        raise HTTPException(403, "Forbidden")
    db.commit()
    return Response(status_code=204)
