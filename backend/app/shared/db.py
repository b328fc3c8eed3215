from __future__ import annotations
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine, event
from .config import settings

class Base(DeclarativeBase):
    pass


def create_db_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    eng = create_engine(url, echo=False, future=True, connect_args=connect_args)
    if url.startswith("sqlite"):
        _serialize_sqlite_transactions(eng)
    return eng


def _serialize_sqlite_transactions(eng) -> None:
    # pysqlite defers BEGIN until the first write; take the write lock up front
    # so a transaction's reads and writes can't interleave with another writer.
    @event.listens_for(eng, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(eng, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


DB_URL = settings.DATABASE_URL
engine = create_db_engine(DB_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
