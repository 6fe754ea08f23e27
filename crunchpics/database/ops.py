import sqlite3
import logging
import threading
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from ..exceptions import ConflictError, StoreWriteError
from ..models import PictureRecord
from .tags import escape_tag, parse_tags, serialize_tags

_PICTURE_COLUMNS = "id, filename, path, type_id, size, content_hash, tags, dupe_count"


def _row_to_record(row) -> PictureRecord:
    pic_id, filename, path, type_id, size, content_hash, tags, dupe_count = row
    return PictureRecord(
        id=int(pic_id),
        filename=filename,
        path=path,
        type_id=int(type_id),
        size=int(size),
        content_hash=content_hash,
        tags=parse_tags(tags),
        dupe_count=int(dupe_count),
    )


class CatalogStore:
    """
    The pictures table: one record per distinct (content_hash, size).

    Every write is a single transaction taken under the shared write lock, so
    an interrupted run never leaves a half-written record behind.
    """

    def __init__(self, conn: sqlite3.Connection, write_lock: Optional[threading.Lock] = None):
        self.conn = conn
        self.write_lock = write_lock or threading.Lock()

    def find(self, content_hash: str, size: int) -> Optional[PictureRecord]:
        cur = self.conn.execute(
            f"SELECT {_PICTURE_COLUMNS} FROM pictures WHERE content_hash = ? AND size = ?",
            (content_hash, size),
        )
        row = cur.fetchone()
        return _row_to_record(row) if row else None

    def get(self, record_id: int) -> Optional[PictureRecord]:
        cur = self.conn.execute(f"SELECT {_PICTURE_COLUMNS} FROM pictures WHERE id = ?", (record_id,))
        row = cur.fetchone()
        return _row_to_record(row) if row else None

    def insert(self,
               display_name: str,
               path: Union[str, Path],
               type_id: int,
               size: int,
               content_hash: str,
               tags: Iterable[str]) -> PictureRecord:
        """
        Creates a new record with dupe_count = 0.
        Raises ConflictError if (content_hash, size) is already cataloged.
        """
        tags_text = serialize_tags(tags)

        with self.write_lock:
            try:
                with self.conn:
                    cur = self.conn.execute("""
                        INSERT INTO pictures (filename, path, type_id, size, content_hash, tags, dupe_count)
                        VALUES (?, ?, ?, ?, ?, ?, 0)
                    """, (display_name, str(path), type_id, size, content_hash, tags_text))
            except sqlite3.IntegrityError as e:
                if self.find(content_hash, size) is not None:
                    raise ConflictError(
                        f"Insert of {path}: content {content_hash}/{size} is already cataloged"
                    ) from e
                raise StoreWriteError(f"Insert of {path} failed: {e}") from e
            except sqlite3.Error as e:
                raise StoreWriteError(f"Insert of {path} failed: {e}") from e

        if cur.lastrowid is None:
            raise StoreWriteError("Database INSERT failed to return a row ID.")

        return PictureRecord(
            id=cur.lastrowid,
            filename=display_name,
            path=str(path),
            type_id=type_id,
            size=size,
            content_hash=content_hash,
            tags=parse_tags(tags_text),
            dupe_count=0,
        )

    def merge_tags(self, record_id: int, new_tags: Iterable[str]) -> PictureRecord:
        """
        Unions new_tags into the record and counts one more duplicate sighting.

        The tag result is idempotent, the dupe_count is not: every call is one
        more time this content was seen.
        """
        new_tags = list(new_tags)

        with self.write_lock:
            try:
                with self.conn:
                    row = self.conn.execute("SELECT tags FROM pictures WHERE id = ?", (record_id,)).fetchone()
                    if row is None:
                        raise StoreWriteError(f"Tag merge failed: no picture with id={record_id}")

                    merged = parse_tags(row[0]) | set(new_tags)
                    self.conn.execute(
                        "UPDATE pictures SET tags = ?, dupe_count = dupe_count + 1 WHERE id = ?",
                        (serialize_tags(merged), record_id),
                    )
            except sqlite3.Error as e:
                raise StoreWriteError(f"Tag merge for picture id={record_id} failed: {e}") from e

        record = self.get(record_id)
        logging.debug(f"Merged tags into picture {record_id}: {sorted(record.tags)}")
        return record

    # --- Read helpers (summary & query tool) ---

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM pictures").fetchone()[0]

    def total_dupes(self) -> int:
        return self.conn.execute("SELECT COALESCE(SUM(dupe_count), 0) FROM pictures").fetchone()[0]

    def find_by_tag(self, tag: str) -> List[PictureRecord]:
        """Records carrying `tag`. The SQL filter is coarse, exact matching happens on the parsed set."""
        cur = self.conn.execute(
            f"SELECT {_PICTURE_COLUMNS} FROM pictures WHERE instr(tags, ?) > 0 ORDER BY id",
            (escape_tag(tag),),
        )
        return [rec for rec in map(_row_to_record, cur.fetchall()) if tag in rec.tags]

    def most_duplicated(self, limit: int = 10) -> List[PictureRecord]:
        cur = self.conn.execute(f"""
            SELECT {_PICTURE_COLUMNS} FROM pictures
            WHERE dupe_count > 0
            ORDER BY dupe_count DESC, id
            LIMIT ?
        """, (limit,))
        return [_row_to_record(r) for r in cur.fetchall()]

    def iter_all(self) -> Iterator[PictureRecord]:
        cur = self.conn.execute(f"SELECT {_PICTURE_COLUMNS} FROM pictures ORDER BY id")
        for row in cur:
            yield _row_to_record(row)
