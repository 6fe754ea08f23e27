"""
Content based file type detection.

The label is the libmagic description of the file ("JPEG image data, JFIF
standard 1.01, ..."), the same text `file -b` prints. File extensions are
never consulted.
"""
from pathlib import Path
from typing import Any, Protocol

from ..exceptions import FileHashError, SetupError

# python-magic raises ImportError when libmagic itself is missing
magic: Any = None
try:
    import magic
except ImportError:
    magic = None


class Classifier(Protocol):
    def classify(self, path: Path) -> str:
        ...


class MagicClassifier:
    def __init__(self):
        if magic is None:
            raise SetupError(
                "Required package python-magic (and the libmagic library) cannot be found."
            )
        try:
            self._magic = magic.Magic()
        except magic.MagicException as e:
            raise SetupError(f"libmagic could not load its database: {e}") from e

    def classify(self, path: Path) -> str:
        try:
            return self._magic.from_file(str(path))
        except (OSError, magic.MagicException) as e:
            raise FileHashError(f"Cannot classify {path}: {e}") from e
