# backend/app/deps.py
from typing import Iterator, Optional

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from .shared.db import SessionLocal


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def session_id(x_session_id: Optional[str] = Header(None, alias="x-session-id")) -> str:
    """Opaque caller identity; compared for equality only."""
    if not x_session_id:
        raise HTTPException(status_code=400, detail="Missing x-session-id")
    return x_session_id
