from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

import streamlit as st

from core.errors import TransportError
from core.logging import get_logger
from core.schema import SCHEMA_SQL, SCHEMA_VERSION

logger = get_logger(__name__)


def connect(db_path: Path | str) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@st.cache_resource
def get_conn(db_path: Path) -> sqlite3.Connection:
    logger.info("Opening database", db_path=str(db_path))
    return connect(db_path)


def ensure_schema(conn: sqlite3.Connection, *, force: bool = False) -> None:
    """
    Create missing tables once per database file.

    executescript() commits whatever is pending, so it never runs while a
    unit of work is open on this connection.
    """
    with _lock_for(conn):
        if conn_in_unit(conn):
            return
        version = int(conn.execute("PRAGMA user_version").fetchone()[0])
        if version >= SCHEMA_VERSION and not force:
            return
        conn.executescript(SCHEMA_SQL)
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        conn.commit()
        logger.info("Schema created", schema_version=SCHEMA_VERSION)


def q(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
    # Waits for any unit another session has open, so uncommitted rows stay private.
    with _lock_for(conn):
        cur = conn.execute(sql, tuple(params))
        rows = cur.fetchall()
        cur.close()
    return rows


def x(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> int:
    with _lock_for(conn):
        cur = conn.execute(sql, tuple(params))
        if not conn_in_unit(conn):
            conn.commit()
        last = cur.lastrowid
        cur.close()
    return int(last or 0)


def run(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
    """Execute without committing; the caller owns the transaction."""
    return conn.execute(sql, tuple(params))


# The Streamlit connection is shared by every session thread. One re-entrant
# lock per connection serialises units of work in this process; nesting on
# the same thread joins the open unit.
_locks: dict[int, threading.RLock] = {}
_open_units: set[int] = set()
_registry_lock = threading.Lock()


def _lock_for(conn: sqlite3.Connection) -> threading.RLock:
    with _registry_lock:
        lock = _locks.get(id(conn))
        if lock is None:
            lock = _locks[id(conn)] = threading.RLock()
        return lock


def conn_in_unit(conn: sqlite3.Connection) -> bool:
    return id(conn) in _open_units


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    One unit of work: BEGIN IMMEDIATE ... COMMIT, or ROLLBACK on any error.

    IMMEDIATE takes SQLite's write lock up front, so a check-then-write
    sequence inside the block cannot interleave with another writer.
    sqlite3 errors surface as TransportError.
    """
    with _lock_for(conn):
        if conn_in_unit(conn):
            yield conn
            return

        if conn.in_transaction:
            conn.commit()

        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise TransportError(f"Could not start transaction: {e}") from e

        _open_units.add(id(conn))
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Transaction failed", error=str(e))
            raise TransportError(str(e)) from e
        except BaseException:
            conn.rollback()
            raise
        else:
            try:
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise TransportError(f"Commit failed: {e}") from e
        finally:
            _open_units.discard(id(conn))
