import hashlib
from pathlib import Path
from typing import Tuple

from .. import config
from ..exceptions import FileHashError


class FileHasher:
    def __init__(self, algorithm: str = config.HASH_ALGORITHM, chunk_size: int = config.HASH_CHUNK_SIZE):
        # Fail fast on an unknown algorithm name instead of on the first file
        hashlib.new(algorithm)
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    def compute(self, path: Path) -> Tuple[int, str]:
        """
        Reads the whole file once.

        Returns:
            (size, hex digest), where size is the number of bytes actually read
        """
        h = hashlib.new(self.algorithm)
        size = 0
        try:
            with open(path, 'rb') as f:
                while chunk := f.read(self.chunk_size):
                    h.update(chunk)
                    size += len(chunk)
        except OSError as e:
            raise FileHashError(f"Cannot read {path}: {e}") from e
        return size, h.hexdigest()
