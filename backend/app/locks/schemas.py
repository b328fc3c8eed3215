# backend/app/locks/schemas.py
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    # the store hands back naive UTC; make the offset explicit on the wire
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LockOut(CamelModel):
    note_id: int
    locked_by: str
    locked_at: UtcDatetime
    expires_at: UtcDatetime


class LockHeldOut(CamelModel):
    """Body of a 423: who holds the lock, when it lapses (both null if unknown)."""

    locked_by: Optional[str] = None
    expires_at: Optional[UtcDatetime] = None


class LockStateOut(CamelModel):
    is_locked: bool
    locked_by: Optional[str] = None
    expires_at: Optional[UtcDatetime] = None
