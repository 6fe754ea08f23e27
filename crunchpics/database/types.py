import sqlite3
import logging
import threading
from typing import Dict, List, Optional

from ..exceptions import StoreWriteError
from ..models import TypeDescriptor


class TypeRegistry:
    """
    Maps classifier labels to small integer ids, creating them on demand.

    Labels are compared exactly (case and content sensitive). Rows are never
    updated or deleted, so resolved ids are cached for the registry's lifetime.
    """

    def __init__(self, conn: sqlite3.Connection, write_lock: Optional[threading.Lock] = None):
        self.conn = conn
        self.write_lock = write_lock or threading.Lock()
        self._cache: Dict[str, int] = {}

    def resolve(self, label: str) -> int:
        cached = self._cache.get(label)
        if cached is not None:
            return cached

        with self.write_lock:
            try:
                with self.conn:
                    cur = self.conn.execute("INSERT OR IGNORE INTO types (label) VALUES (?)", (label,))
                    if cur.rowcount:
                        logging.debug(f"New type registered: {label}")
                    row = self.conn.execute("SELECT id FROM types WHERE label = ?", (label,)).fetchone()
            except sqlite3.Error as e:
                raise StoreWriteError(f"Could not register type {label!r}: {e}") from e

        if row is None:
            raise StoreWriteError(f"Type {label!r} missing right after insert")

        type_id = int(row[0])
        self._cache[label] = type_id
        return type_id

    def get(self, type_id: int) -> Optional[TypeDescriptor]:
        row = self.conn.execute("SELECT id, label FROM types WHERE id = ?", (type_id,)).fetchone()
        return TypeDescriptor(*row) if row else None

    def all(self) -> List[TypeDescriptor]:
        cur = self.conn.execute("SELECT id, label FROM types ORDER BY id")
        return [TypeDescriptor(*r) for r in cur.fetchall()]

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM types").fetchone()[0]
