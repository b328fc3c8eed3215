from __future__ import annotations
from typing import Optional

from pydantic import Field

from ..locks.schemas import CamelModel, LockStateOut, UtcDatetime


class NoteUpdate(CamelModel):
    # only fields that are present (non-null) are written
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None


class NoteOut(CamelModel):
    id: int
    title: str
    content: str
    updated_at: UtcDatetime
    lock: LockStateOut
