# registry/storage/sqlite.py
import os
import sqlite3
import json
from pathlib import Path
from typing import List, Optional, Set

from registry.core.types import Record
from registry.core.canon import canonical_json_str
from . import StorageBackend


class SQLiteStorage(StorageBackend):
    """SQLite persistent storage for attestation ledgers."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            env_path = os.environ.get("REGISTRY_DB_PATH")
            db_path = env_path if env_path else Path.cwd() / "registry.db"

        if str(db_path) == ":memory:":
            self.db_path = None
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        conn_str = str(self.db_path) if self.db_path else ":memory:"
        # the ledger serializes all writes itself; the connection is shared across its threads
        self._conn = sqlite3.connect(conn_str, isolation_level=None, check_same_thread=False)
        if self.db_path:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS records (
                ledger          TEXT    NOT NULL,
                seq             INTEGER NOT NULL,
                record_id       TEXT    NOT NULL,
                kind            TEXT    NOT NULL,
                content_hash    TEXT    NOT NULL,
                submitter       TEXT    NOT NULL,
                created_at      INTEGER NOT NULL,
                is_valid        INTEGER NOT NULL DEFAULT 1,
                payload_json    TEXT    NOT NULL,
                PRIMARY KEY (ledger, seq),
                UNIQUE (ledger, record_id)
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS owners (
                ledger          TEXT    PRIMARY KEY,
                owner           TEXT    NOT NULL
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS writers (
                ledger          TEXT    NOT NULL,
                identity        TEXT    NOT NULL,
                PRIMARY KEY (ledger, identity)
            )
        """)
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_submitter ON records(ledger, submitter)")
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_content   ON records(ledger, content_hash)")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Storage connection is closed")
        return self._conn

    def append_record(self, ledger: str, record: Record) -> None:
        d = record.to_dict()
        # seq is computed inside the INSERT so it stays dense even across processes
        self.conn.execute("""
            INSERT INTO records
            (ledger, seq, record_id, kind, content_hash, submitter, created_at, is_valid, payload_json)
            VALUES (?, (SELECT COALESCE(MAX(seq), -1) + 1 FROM records WHERE ledger = ?),
                    ?, ?, ?, ?, ?, ?, ?)
        """, (
            ledger, ledger, d["id"], d["kind"], d["content_hash"], d["submitter"],
            d["created_at"], int(d["is_valid"]), canonical_json_str(d["payload"])
        ))

    def mark_revoked(self, ledger: str, record_id: bytes) -> None:
        cursor = self.conn.execute(
            "UPDATE records SET is_valid = 0 WHERE ledger = ? AND record_id = ?",
            (ledger, "0x" + record_id.hex())
        )
        if cursor.rowcount != 1:
            raise ValueError(f"Record 0x{record_id.hex()} missing from storage for ledger '{ledger}'")

    def save_owner(self, ledger: str, owner: str) -> None:
        self.conn.execute("""
            INSERT INTO owners (ledger, owner) VALUES (?, ?)
            ON CONFLICT(ledger) DO UPDATE SET owner = excluded.owner
        """, (ledger, owner))

    def set_writer(self, ledger: str, identity: str, authorized: bool) -> None:
        if authorized:
            self.conn.execute(
                "INSERT OR IGNORE INTO writers (ledger, identity) VALUES (?, ?)",
                (ledger, identity)
            )
        else:
            self.conn.execute(
                "DELETE FROM writers WHERE ledger = ? AND identity = ?",
                (ledger, identity)
            )

    def load_owner(self, ledger: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT owner FROM owners WHERE ledger = ?", (ledger,)
        ).fetchone()
        return row[0] if row else None

    def load_writers(self, ledger: str) -> Set[str]:
        cursor = self.conn.execute(
            "SELECT identity FROM writers WHERE ledger = ?", (ledger,)
        )
        return {row[0] for row in cursor.fetchall()}

    def load_records(self, ledger: str) -> List[Record]:
        cursor = self.conn.execute("""
            SELECT record_id, kind, content_hash, submitter, created_at, is_valid, payload_json
            FROM records WHERE ledger = ? ORDER BY seq ASC
        """, (ledger,))

        loaded = []
        for row in cursor:
            rid, kind, chash, submitter, created_at, is_valid, pjson = row
            loaded.append(Record.from_dict({
                "id": rid,
                "kind": kind,
                "content_hash": chash,
                "submitter": submitter,
                "created_at": created_at,
                "is_valid": bool(is_valid),
                "payload": json.loads(pjson),
            }))
        return loaded

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
