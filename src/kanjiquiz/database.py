import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from .config import settings
from .errors import PersistenceFailure


def default_db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


class Database:
    """Handle on the sqlite file holding sessions, orders and logs.

    A connection is opened per operation so that readers of different
    sessions never share (or wait on) one another's connection.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or default_db_path()

    def connect(self) -> sqlite3.Connection:
        """Establishes a connection to the SQLite database."""
        try:
            conn = sqlite3.connect(self.path, timeout=10, isolation_level=None)
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Cannot open database {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        conn = self.connect()
        try:
            yield conn
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Read failed: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """One read-modify-write unit: committed as a whole or not at all."""
        conn = self.connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise PersistenceFailure(f"Write failed: {e}") from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def init_db(self):
        """Initializes the database and creates necessary tables."""
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
        conn = self.connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    set_id TEXT NOT NULL,
                    score INTEGER NOT NULL DEFAULT 0,
                    current_index INTEGER NOT NULL DEFAULT 0,
                    total_questions INTEGER NOT NULL DEFAULT 0,
                    correct_count INTEGER NOT NULL DEFAULT 0,
                    incorrect_count INTEGER NOT NULL DEFAULT 0,
                    answered_item_ids TEXT NOT NULL DEFAULT '[]',
                    has_order_saved INTEGER NOT NULL DEFAULT 0,
                    last_accessed TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS orders (
                    session_id TEXT PRIMARY KEY,
                    ordered_item_ids TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                    level TEXT,
                    message TEXT
                );
                """
            )
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Cannot initialise {self.path}: {e}") from e
        finally:
            conn.close()
