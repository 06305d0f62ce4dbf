# Overview: Service-layer helpers for write transactions and row locking.

from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    begin_write() covers SQLite.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the write transaction up front so the read-check-write sequence of
    a unit of work cannot interleave with another writer.

    SQLite: BEGIN IMMEDIATE takes the database RESERVED lock now instead of
    at the first UPDATE. Other engines rely on lock_for_update().
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))
