from __future__ import annotations

# workshop/db.py
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

import yaml

from .errors import DatabaseError

# DB path resolution order:
# 1) env WORKSHOP_DB_PATH
# 2) config.yaml test_db_path (only when running under tests)
# 3) config.yaml db_path
# 4) projects.db in the working directory
# Relative paths in config.yaml resolve against the file's own directory.
SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "schema.sql")
DEFAULT_DB_NAME = "projects.db"

_CONFIG_KEYS = ("db_path", "test_db_path", "log_level")


def default_config_path() -> str:
    return os.environ.get("WORKSHOP_CONFIG") or os.path.join(os.getcwd(), "config.yaml")


def read_config(cfg_path: str | None = None) -> dict:
    """Read the known keys of config.yaml; a missing or broken file yields {}."""
    cfg_path = cfg_path or default_config_path()
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(cfg, dict):
        return {}
    out = {}
    for k in _CONFIG_KEYS:
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    return out


def get_db_path(cfg_path: str | None = None) -> str:
    env_path = os.environ.get("WORKSHOP_DB_PATH")
    cfg_path = cfg_path or default_config_path()
    cfg = read_config(cfg_path)
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg.get("test_db_path"):
        path = cfg["test_db_path"]
    elif cfg.get("db_path"):
        path = cfg["db_path"]
    else:
        path = os.path.join(os.getcwd(), DEFAULT_DB_NAME)

    if not os.path.isabs(path):
        path = os.path.join(os.path.dirname(os.path.abspath(cfg_path)), path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection for the duration of a `with` block.

    The connection runs in autocommit mode, so multi-statement work goes
    through `transaction()`. Foreign keys are on and rows are `sqlite3.Row`.
    The connection is closed on every exit path.
    """
    path = db_path or get_db_path()
    try:
        conn = sqlite3.connect(
            path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
            isolation_level=None,
        )
    except sqlite3.Error as e:
        raise DatabaseError(f"cannot open database {path}: {e}") from e
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """BEGIN, then COMMIT on success or ROLLBACK and re-raise on any error."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.rollback()
        raise
    else:
        conn.commit()


def last_insert_id(conn: sqlite3.Connection, table: str) -> int:
    row = conn.execute("SELECT last_insert_rowid() AS id").fetchone()
    if row is None or not row["id"]:
        raise DatabaseError(f"unable to obtain generated id for {table}")
    return int(row["id"])


def init_schema(db_path: str | None = None) -> None:
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        ddl = f.read()
    with get_conn(db_path) as conn:
        try:
            conn.executescript(ddl)
        except sqlite3.Error as e:
            raise DatabaseError(f"cannot apply schema: {e}") from e
