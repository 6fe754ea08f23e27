"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1


def init_schema(conn: sqlite3.Connection):
    """
    Applies the catalog schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Type Registry
        # One row per distinct classifier description ("JPEG image data, ...")
        conn.execute("""
        CREATE TABLE IF NOT EXISTS types (
            id      INTEGER PRIMARY KEY AUTOINCREMENT,
            label   TEXT NOT NULL UNIQUE
        );
        """)

        # 3. Pictures
        # One row per distinct content. (content_hash, size) is the dedup key.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS pictures (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            filename        TEXT NOT NULL,
            path            TEXT NOT NULL,          -- first sighting only
            type_id         INTEGER NOT NULL,
            size            INTEGER NOT NULL,
            content_hash    TEXT NOT NULL,
            tags            TEXT NOT NULL DEFAULT '',
            dupe_count      INTEGER NOT NULL DEFAULT 0,
            UNIQUE (content_hash, size),
            FOREIGN KEY(type_id) REFERENCES types(id)
        );
        """)

        # 4. Indices
        conn.execute("CREATE INDEX IF NOT EXISTS idx_pictures_type ON pictures(type_id);")

    logging.debug("Database schema initialized.")
