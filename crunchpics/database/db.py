"""
Database connection management.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional

from ..exceptions import StoreWriteError
from .schema import init_schema


class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # Hashing may run in worker threads, catalog writes never do
        self._write_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Connects to the SQLite catalog, configures pragmas and makes sure the
        schema exists. An existing catalog is reused and appended to.
        """
        if self._conn:
            return self._conn

        if Path(self.db_path).exists():
            logging.info(f"Reusing existing catalog: {self.db_path}")
        else:
            logging.info(f"Creating catalog: {self.db_path}")

        try:
            self._conn = sqlite3.connect(self.db_path)

            # Safe for single-writer, multi-reader
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn.execute("PRAGMA temp_store=MEMORY;")
            self._conn.execute("PRAGMA foreign_keys=ON;")

            init_schema(self._conn)
        except sqlite3.Error as e:
            self.close()
            raise StoreWriteError(f"Could not open catalog {self.db_path}: {e}") from e

        return self._conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def write_lock(self) -> threading.Lock:
        """Returns the lock every catalog write must hold."""
        return self._write_lock
