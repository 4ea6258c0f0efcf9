"""Relational storage for published setups (SQLite).

The database file may exist before installation; reads and writes raise
:class:`StorageNotReady` until :meth:`SetupStore.install` has created the
tables.  Each call opens its own connection so the store can be shared by
the server's worker threads.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from importlib import resources
from pathlib import Path
from typing import Optional

from toneshare.errors import RecordError, StorageNotReady

REQUIRED_FIELDS = ("id", "title", "artist", "chain")
TEXT_FIELDS = ("id", "title", "artist", "instrument", "genre", "coverImage",
               "creator_id", "creator", "creatorAvatar")


logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def load_schema() -> str:
    return resources.files("toneshare").joinpath("schema.sql").read_text(encoding="utf-8")


class SetupStore:
    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()

    # -- connections ---------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def is_installed(self) -> bool:
        if not self.db_path.exists():
            return False
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name='setups'"
                ).fetchone()
            finally:
                conn.close()
        return row is not None

    def _require_installed(self):
        if not self.is_installed():
            raise StorageNotReady("database not installed; run the install step first")

    # -- install -------------------------------------------------------------

    def install(self, script: Optional[str] = None):
        """Run the schema script against the database."""
        sql = script if script is not None else load_schema()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("[Store] Running installation script on %s", self.db_path)
        with self._lock:
            conn = self._connect()
            try:
                conn.executescript(sql)
                conn.commit()
            finally:
                conn.close()

    # -- queries -------------------------------------------------------------

    def list_setups(self) -> list[dict]:
        """All setups, newest first, joined with their creator."""
        self._require_installed()
        with self._lock:
            conn = self._connect()
            try:
                rows = conn.execute(
                    """
                    SELECT s.*, u.name AS creator, u.avatar AS creator_avatar
                    FROM setups s
                    LEFT JOIN users u ON s.creator_id = u.id
                    ORDER BY s.updated_at DESC, s.rowid DESC
                    """
                ).fetchall()
            finally:
                conn.close()
        return [self._row_to_record(r) for r in rows]

    def get_setup(self, setup_id: str) -> Optional[dict]:
        for record in self.list_setups():
            if record["id"] == setup_id:
                return record
        return None

    def save_setup(self, record: dict):
        """Insert a published setup (and its creator, if named)."""
        self._require_installed()
        if not isinstance(record, dict):
            raise RecordError("setup record must be an object")
        missing = [f for f in REQUIRED_FIELDS if not record.get(f) and f != "chain"]
        if "chain" not in record or not isinstance(record["chain"], list):
            missing.append("chain")
        if missing:
            raise RecordError(f"missing field(s): {', '.join(missing)}")
        wrong = [f for f in TEXT_FIELDS
                 if record.get(f) is not None and not isinstance(record[f], str)]
        if wrong:
            raise RecordError(f"field(s) must be text: {', '.join(wrong)}")

        creator_id = record.get("creator_id")
        with self._lock:
            conn = self._connect()
            try:
                if creator_id and record.get("creator"):
                    conn.execute(
                        "INSERT OR IGNORE INTO users (id, name, avatar) VALUES (?,?,?)",
                        (creator_id, record["creator"], record.get("creatorAvatar") or ""),
                    )
                conn.execute(
                    "INSERT INTO setups (id, title, artist, creator_id, instrument, genre, "
                    "tags, cover_image, amplifier_config, pedal_chain, updated_at) "
                    "VALUES (?,?,?,?,?,?,?,?,?,?,?)",
                    (
                        record["id"], record["title"], record["artist"], creator_id,
                        record.get("instrument") or "Electric Guitar",
                        record.get("genre") or "",
                        json.dumps(record.get("tags") or []),
                        record.get("coverImage") or "",
                        json.dumps(record.get("amplifier")),
                        json.dumps(record["chain"]),
                        _now(),
                    ),
                )
                conn.commit()
            except (sqlite3.IntegrityError, sqlite3.InterfaceError,
                    sqlite3.ProgrammingError) as e:
                raise RecordError(f"cannot save setup '{record['id']}': {e}") from e
            finally:
                conn.close()
        logger.info("[Store] Saved setup %s (%s)", record["id"], record["title"])

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> dict:
        return {
            "id": row["id"],
            "title": row["title"],
            "artist": row["artist"],
            "creator_id": row["creator_id"],
            "creator": row["creator"],
            "creatorAvatar": row["creator_avatar"],
            "instrument": row["instrument"],
            "genre": row["genre"],
            "tags": json.loads(row["tags"] or "[]"),
            "coverImage": row["cover_image"],
            "amplifier": json.loads(row["amplifier_config"]) if row["amplifier_config"] else None,
            "chain": json.loads(row["pedal_chain"] or "[]"),
            "likes": row["likes"],
            "comments": row["comments"],
            "updatedAt": row["updated_at"],
        }
