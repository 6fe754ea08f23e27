"""
Configuration constants for crunchpics.
"""

# --- Catalog ---
DEFAULT_DB_FILENAME = "crunchpics.db"

# --- Hashing & Performance ---
# 160-bit digest, same as the old `shasum` based catalogs so they keep matching.
HASH_ALGORITHM = "sha1"
HASH_CHUNK_SIZE = 1024 * 1024  # 1 MB chunks for reading

DEFAULT_MAX_WORKERS = 1

# Log a progress line every N processed files when no progress bar is shown
PROGRESS_LOG_INTERVAL = 1000

# --- Tags ---
# Tags are stored as "a;b;c". A literal delimiter or escape char inside a tag
# is prefixed with TAG_ESCAPE.
TAG_DELIMITER = ";"
TAG_ESCAPE = "\\"
