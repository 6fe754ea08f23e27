import os
import logging
import threading
from pathlib import Path
from typing import Iterator, List, Optional, Set
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..exceptions import FileHashError, InvalidPathError
from ..models import FileInfo, ScannedFile
from .classifier import Classifier
from .hasher import FileHasher
from .tokenizer import tokenize_path


def analyze_file(path: Path, hasher: FileHasher, classifier: Classifier) -> FileInfo:
    """
    Size, content hash and content type of one file. Pure read.
    Raises FileHashError when the file cannot be read or classified.
    """
    size, digest = hasher.compute(path)
    try:
        label = classifier.classify(path)
    except FileHashError:
        raise
    except OSError as e:
        raise FileHashError(f"Cannot classify {path}: {e}") from e
    return FileInfo(size=size, content_hash=digest, type_label=label)


class DiskScanner:
    def __init__(self, classifier: Classifier, hasher: Optional[FileHasher] = None):
        self.classifier = classifier
        self.hasher = hasher or FileHasher()
        # Files that could not be read during the last scan() call
        self.failures: List[Path] = []
        self._failures_lock = threading.Lock()

    def scan(self,
             root: Path,
             skip_dirs: Optional[Set[Path]] = None,
             max_workers: int = 1) -> Iterator[ScannedFile]:
        """
        Generator that yields a ScannedFile for every readable regular file in root.

        Unreadable files are logged, collected in `self.failures` and skipped.

        Args:
            skip_dirs: Directories (and everything below them) to leave out
            max_workers: Threads used for hashing. 1 means sequential.
        """
        skip_dirs = skip_dirs or set()
        self.failures = []

        if max_workers <= 1:
            yield from self._scan_sequential(root, skip_dirs)
        else:
            yield from self._scan_parallel(root, skip_dirs, max_workers)

    def _scan_sequential(self, root: Path, skip_dirs: Set[Path]) -> Iterator[ScannedFile]:
        for path in self._iter_files(root, skip_dirs):
            scanned = self._process_single_file(path, root)
            if scanned:
                yield scanned

    def _scan_parallel(self, root: Path, skip_dirs: Set[Path], max_workers: int) -> Iterator[ScannedFile]:
        """
        Hashes in worker threads, one directory per task so reads stay
        sequential on spinning disks. Results are yielded on the calling
        thread, which is the only one writing to the catalog.
        """
        dir_batches = self._group_files_by_directory(root, skip_dirs)

        logging.info(f"Parallel scan: {len(dir_batches)} directories, {max_workers} workers")

        executor = ThreadPoolExecutor(max_workers=max_workers)
        try:
            future_to_batch = {
                executor.submit(self._process_directory_batch, root, files): directory
                for directory, files in dir_batches.items()
            }

            for future in as_completed(future_to_batch):
                yield from future.result()
        finally:
            # Reached early when the consumer stops (write failure, Ctrl-C)
            executor.shutdown(wait=True, cancel_futures=True)

    def _group_files_by_directory(self, root: Path, skip_dirs: Set[Path]) -> dict[Path, List[Path]]:
        dir_batches: dict[Path, List[Path]] = {}
        for path in self._iter_files(root, skip_dirs):
            dir_batches.setdefault(path.parent, []).append(path)
        return dir_batches

    def _process_directory_batch(self, root: Path, files: List[Path]) -> List[ScannedFile]:
        records = []
        for path in files:
            scanned = self._process_single_file(path, root)
            if scanned:
                records.append(scanned)
        return records

    def _process_single_file(self, path: Path, root: Path) -> Optional[ScannedFile]:
        """Hashes, classifies and tokenizes one file. Returns None if it can't be read."""
        try:
            info = analyze_file(path, self.hasher, self.classifier)
            tokens = tokenize_path(path, root)
        except (FileHashError, InvalidPathError) as e:
            logging.warning(f"Skipping {path}: {e}")
            with self._failures_lock:
                self.failures.append(path)
            return None

        return ScannedFile(path=path, root=root, info=info, tokens=tokens)

    def _iter_files(self, root: Path, skip_dirs: Set[Path]) -> Iterator[Path]:
        """Depth-first walker using os.scandir. Only regular files, no symlinks."""
        stack = [root]
        while stack:
            current = stack.pop()
            if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
                logging.debug(f"Skipping directory {current}")
                continue

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except FileNotFoundError:
                logging.warning(f"Folder not found: {current}")
                continue
            except OSError as e:
                logging.warning(f"Cannot list {current}: {e}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                try:
                    if e.is_dir(follow_symlinks=False):
                        dirs.append(Path(e.path))
                    elif e.is_file(follow_symlinks=False):
                        files.append(Path(e.path))
                except OSError as err:
                    logging.warning(f"Cannot stat {e.path}: {err}")

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
