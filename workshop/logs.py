"""
Logging for the workshop package.

- `setup_logging()` configures stdlib logging from config.yaml's `log_level`.
- `LogContext` writes one audit row per user-facing operation into
  `operation_log` (payload, before/after snapshots, result, latency).
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import sqlite3
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from .db import get_conn, read_config
from .errors import DatabaseError

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
"""

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    level = (level or read_config().get("log_level") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def ensure_log_schema(db_path: str | None = None):
    with get_conn(db_path) as conn:
        try:
            conn.executescript(DDL)
        except sqlite3.Error as e:
            raise DatabaseError(f"cannot create operation_log: {e}") from e


def _dumps(obj: Any) -> Optional[str]:
    if obj is None:
        return None
    # Decimal/date values are stored by their str() form
    return json.dumps(obj, ensure_ascii=False, default=str)


class LogContext:
    def __init__(self, action: str, user: str = "owner", db_path: str | None = None):
        self.db_path = db_path
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None

    def set_entity(self, etype: str, eid: str):
        self.entity_type = etype
        self.entity_id = eid

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def write(self, result: str = "OK", err: Optional[str] = None):
        rec = {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dumps(self.before),
            "after_json": _dumps(self.after),
            "payload_json": _dumps(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": int((time.perf_counter() - self.start) * 1000),
        }
        with get_conn(self.db_path) as conn:
            try:
                conn.execute(
                    """INSERT INTO operation_log
                    (ts,user,action,entity_type,entity_id,request_id,before_json,after_json,payload_json,result,err_msg,latency_ms)
                    VALUES(:ts,:user,:action,:entity_type,:entity_id,:request_id,:before_json,:after_json,:payload_json,:result,:err_msg,:latency_ms)""",
                    rec,
                )
            except sqlite3.Error as e:
                raise DatabaseError(f"cannot write operation_log: {e}") from e

    def try_write(self, result: str = "OK", err: Optional[str] = None) -> bool:
        """Like write(), but an audit failure is only logged; returns whether the row landed."""
        try:
            self.write(result, err)
        except DatabaseError as e:
            logger.warning("operation_log write failed for %s: %s", self.action, e)
            return False
        return True


def search_logs(
    q: str | None,
    action: str | None,
    ts_from: str | None,
    ts_to: str | None,
    page: int,
    size: int,
) -> Tuple[int, List[Dict[str, Any]]]:
    where = []
    params: Dict[str, Any] = {}
    if q:
        where.append("(payload_json LIKE :q OR before_json LIKE :q OR after_json LIKE :q)")
        params["q"] = f"%{q}%"
    if action:
        where.append("action = :action")
        params["action"] = action
    if ts_from:
        where.append("ts >= :from")
        params["from"] = ts_from
    if ts_to:
        where.append("ts <= :to")
        params["to"] = ts_to
    wh = " WHERE " + " AND ".join(where) if where else ""
    with get_conn() as conn:
        total = conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
        rows = conn.execute(
            f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT :limit OFFSET :offset",
            {**params, "limit": size, "offset": (page - 1) * size},
        ).fetchall()
        return total, [dict(r) for r in rows]
