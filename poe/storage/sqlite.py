import os
import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from poe.core.types import Claim, Event, Fingerprint, Height, event_from_dict
from poe.core.encoding import fingerprint_hex
from poe.events import NotificationSink
from . import StorageBackend

logger = logging.getLogger(__name__)


class SQLiteStorage(StorageBackend, NotificationSink):
    """
    SQLite persistent storage for the claim registry.
    Also a notification sink: events land in the same transaction as the
    claim write that produced them.
    """

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            env_path = os.environ.get("POE_DB_PATH")
            db_path = env_path if env_path else Path.cwd() / "poe-registry.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._in_transaction = False
        self._connect()

    def _connect(self):
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()
        logger.debug("Opened claim storage at %s", self.db_path)

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS claims (
                fingerprint     BLOB    PRIMARY KEY,
                owner           TEXT    NOT NULL,
                registered_at   INTEGER NOT NULL
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS events (
                seq             INTEGER PRIMARY KEY AUTOINCREMENT,
                name            TEXT    NOT NULL,
                owner           TEXT    NOT NULL,
                fingerprint     BLOB    NOT NULL,
                height          INTEGER NOT NULL
            )
        """)
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_owner ON claims(owner)")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Storage connection is closed")
        return self._conn

    # ── claim map

    def contains(self, key: Fingerprint) -> bool:
        cursor = self.conn.execute(
            "SELECT 1 FROM claims WHERE fingerprint = ?", (bytes(key),)
        )
        return cursor.fetchone() is not None

    def get(self, key: Fingerprint) -> Optional[Claim]:
        cursor = self.conn.execute(
            "SELECT owner, registered_at FROM claims WHERE fingerprint = ?",
            (bytes(key),)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return Claim(owner=row[0], registered_at=row[1])

    def insert(self, key: Fingerprint, claim: Claim) -> None:
        self.conn.execute("""
            INSERT OR REPLACE INTO claims (fingerprint, owner, registered_at)
            VALUES (?, ?, ?)
        """, (bytes(key), claim.owner, claim.registered_at))

    def remove(self, key: Fingerprint) -> None:
        self.conn.execute("DELETE FROM claims WHERE fingerprint = ?", (bytes(key),))

    def items(self) -> List[Tuple[Fingerprint, Claim]]:
        # BLOB ordering is memcmp, same as Python bytes ordering
        cursor = self.conn.execute(
            "SELECT fingerprint, owner, registered_at FROM claims ORDER BY fingerprint ASC"
        )
        return [(bytes(fp), Claim(owner=o, registered_at=h)) for fp, o, h in cursor]

    def __len__(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM claims").fetchone()[0]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            raise RuntimeError("Nested transactions are not supported")
        self.conn.execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        else:
            self.conn.execute("COMMIT")
        finally:
            self._in_transaction = False

    # ── events

    def deposit(self, event: Event, height: Height) -> None:
        self.conn.execute("""
            INSERT INTO events (name, owner, fingerprint, height)
            VALUES (?, ?, ?, ?)
        """, (event.name, event.owner, bytes(event.fingerprint), height))

    def load_events(self, limit: Optional[int] = None) -> List[Tuple[Event, Height]]:
        """Events in commit order; with `limit`, only the most recent ones."""
        if limit is None:
            cursor = self.conn.execute(
                "SELECT name, owner, fingerprint, height FROM events ORDER BY seq ASC"
            )
            rows = cursor.fetchall()
        else:
            cursor = self.conn.execute(
                "SELECT name, owner, fingerprint, height FROM events ORDER BY seq DESC LIMIT ?",
                (limit,)
            )
            rows = cursor.fetchall()
            rows.reverse()  # latest last

        loaded = []
        for name, owner, fp, height in rows:
            event = event_from_dict({
                "event": name,
                "owner": owner,
                "fingerprint": fingerprint_hex(bytes(fp)),
            })
            loaded.append((event, height))
        return loaded

    def latest_height(self) -> Height:
        """Highest height any event was recorded at; 0 for a fresh registry."""
        row = self.conn.execute("SELECT MAX(height) FROM events").fetchone()
        return row[0] if row and row[0] is not None else 0

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
