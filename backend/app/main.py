import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .deps import get_db
from .locks.models import NoteLock
from .locks.router import router as locks_router
from .notes.router import router as notes_router
from .shared.config import settings
from .shared.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    yield


app = FastAPI(
    title="Note Lock API",
    version="0.1.0",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["content-type", "x-session-id"],
)


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("store error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal error"})


@app.get(f"{settings.API_PREFIX}/healthz")
def healthz():
    return {"status": "ok", "app": "Note Lock"}


if settings.test_reset_enabled:

    @app.post(f"{settings.API_PREFIX}/__test__/reset")
    def test_reset(db: Session = Depends(get_db)):
        db.execute(delete(NoteLock))
        db.commit()
        return {"ok": True}


app.include_router(notes_router)
app.include_router(locks_router)
