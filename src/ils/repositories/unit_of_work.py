from __future__ import annotations

import logging
import sqlite3
from contextlib import nullcontext
from typing import ContextManager, Optional, Protocol

from ils.domain.errors import StorageError

log = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    cur: sqlite3.Cursor

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...


class SqliteUnitOfWork:
    """One write transaction spanning products, orders and revenue.

    Everything done through ``cur`` commits together on a clean exit and is
    rolled back on any exception. ``sqlite3.Error`` surfaces as ``StorageError``;
    domain errors pass through untouched.
    """

    def __init__(self, repo):
        self.repo = repo
        self.conn: Optional[sqlite3.Connection] = None
        self.cur: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "SqliteUnitOfWork":
        try:
            self.conn = self.repo.begin()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not start transaction: {exc}") from exc
        self.cur = self.conn.cursor()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        conn = self.conn
        self.conn = None
        self.cur = None
        if conn is None:
            return None
        try:
            if exc_type is None:
                conn.commit()
                return None
            conn.rollback()
        except sqlite3.Error as commit_exc:
            log.error("transaction_failed error=%s", commit_exc)
            raise StorageError(f"Transaction failed: {commit_exc}") from commit_exc
        finally:
            conn.close()

        if isinstance(exc, sqlite3.Error):
            log.error("transaction_rolled_back error=%s", exc)
            raise StorageError(f"Storage failure: {exc}") from exc
        return None


def join_or_begin(uow_factory, uow: Optional[UnitOfWork]) -> ContextManager:
    """Reuse the caller's unit of work, or open a fresh one."""
    if uow is not None:
        return nullcontext(uow)
    return uow_factory()
