import shutil
import logging
from pathlib import Path

from ..exceptions import FileOperationError


def relocated_name(content_hash: str, size: int, extension: str = "") -> str:
    """
    Content derived file name: relocated_name("abc123", 42, ".jpg") -> "abc123-42.jpg".
    `extension` keeps its leading dot, or is empty.
    """
    return f"{content_hash}-{size}{extension}"


class RelocationStore:
    """
    Flat folder holding one copy of every unique picture, named after its
    dedup key. Two different contents can never get the same name.
    """

    def __init__(self, destination: Path):
        self.destination = Path(destination)

    def target_for(self, content_hash: str, size: int, extension: str = "") -> Path:
        return self.destination / relocated_name(content_hash, size, extension)

    def store(self, source: Path, content_hash: str, size: int, extension: str = "") -> Path:
        """
        Copies `source` unchanged into the destination folder.
        Raises FileOperationError if the copy fails.
        """
        dest = self.target_for(content_hash, size, extension)

        # Same name means same content, already relocated by an earlier run
        if dest.exists():
            logging.debug(f"Already relocated: {dest}")
            return dest

        try:
            self.destination.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(dest))
        except OSError as e:
            # A truncated copy would pass the exists() check on the next run
            try:
                dest.unlink(missing_ok=True)
            except OSError:
                logging.warning(f"Could not remove partial copy {dest}")
            raise FileOperationError(f"Failed to copy {source} -> {dest}: {e}") from e

        logging.debug(f"Copied {source} -> {dest}")
        return dest
