import pytest
import sqlite3
from pathlib import Path

from crunchpics.core import CrunchPicsApp
from crunchpics.database.schema import init_schema
from crunchpics.database.ops import CatalogStore
from crunchpics.database.types import TypeRegistry

JPEG_MAGIC = b"\xff\xd8\xff"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class FakeClassifier:
    """Sniffs a couple of magic numbers so tests don't need libmagic."""

    def __init__(self):
        self.calls = []

    def classify(self, path: Path) -> str:
        self.calls.append(Path(path))
        head = Path(path).read_bytes()[:8]
        if head.startswith(JPEG_MAGIC):
            return "JPEG image data"
        if head.startswith(PNG_MAGIC):
            return "PNG image data"
        return "data"


@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:")
    init_schema(c)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def catalog(conn):
    return CatalogStore(conn)


@pytest.fixture
def registry(conn):
    return TypeRegistry(conn)


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def app(tmp_path, fake_classifier):
    """App with an on-disk catalog and the fake classifier."""
    return CrunchPicsApp(tmp_path / "catalog.db", classifier=fake_classifier)


@pytest.fixture
def open_catalog():
    """Opens a catalog file read-side for assertions; closes it afterwards."""
    opened = []

    def _open(db_path: Path):
        c = sqlite3.connect(db_path)
        opened.append(c)
        return CatalogStore(c), TypeRegistry(c)

    yield _open
    for c in opened:
        c.close()
