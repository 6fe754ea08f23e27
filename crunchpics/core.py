import logging
from contextlib import closing
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm

from .database.db import DBManager
from .database.ops import CatalogStore
from .database.types import TypeRegistry
from .exceptions import FileOperationError
from .models import CatalogStats, IngestSummary, ScannedFile
from .organization.mover import RelocationStore
from .scanning.classifier import Classifier, MagicClassifier
from .scanning.filesystem import DiskScanner
from .scanning.hasher import FileHasher
from .scanning.tokenizer import storable_text
from . import config


class CrunchPicsApp:
    def __init__(self,
                 db_path: Path,
                 classifier: Optional[Classifier] = None,
                 hasher: Optional[FileHasher] = None):
        self.db_manager = DBManager(db_path)
        self.classifier = classifier
        self.hasher = hasher or FileHasher()

    def ingest(self,
               roots: Iterable[Path],
               destination: Optional[Path] = None,
               max_workers: int = config.DEFAULT_MAX_WORKERS,
               show_progress: bool = False) -> IngestSummary:
        """
        Catalogs every regular file under `roots`.
        1. Scan, Hash & Classify
        2. Resolve the type id
        3. Known content -> merge tags, count the duplicate
        4. New content -> insert, copy to `destination` if set

        Catalog write failures (StoreWriteError) abort the run. Unreadable
        files and failed copies are logged and reported in the summary.
        """
        classifier = self.classifier or MagicClassifier()
        scanner = DiskScanner(classifier, self.hasher)
        relocation = RelocationStore(Path(destination).resolve()) if destination else None
        summary = IngestSummary()

        with self.db_manager as conn:
            lock = self.db_manager.write_lock
            catalog = CatalogStore(conn, lock)
            registry = TypeRegistry(conn, lock)

            with tqdm(desc="Cataloging", unit="file", disable=not show_progress) as progress:
                for root in roots:
                    root = Path(root).resolve()
                    logging.info(f"Scanning {root}...")

                    # Don't re-ingest our own copies when the destination is inside a root
                    skip_dirs = {relocation.destination} if relocation else set()

                    root_summary = IngestSummary()
                    # Closing the scan cancels hash batches that have not started yet
                    with closing(scanner.scan(root, skip_dirs, max_workers=max_workers)) as scanned_files:
                        for scanned in scanned_files:
                            self._catalog_file(scanned, catalog, registry, relocation, root_summary)
                            progress.update(1)

                            if not show_progress and root_summary.processed % config.PROGRESS_LOG_INTERVAL == 0:
                                logging.info(f"{root_summary.processed} files processed in {root}")

                    root_summary.failed = len(scanner.failures)
                    logging.info(
                        f"Scan of {root} complete. Processed {root_summary.processed} files, "
                        f"{root_summary.inserted} new."
                    )
                    summary.merge(root_summary)

        return summary

    def _catalog_file(self,
                      scanned: ScannedFile,
                      catalog: CatalogStore,
                      registry: TypeRegistry,
                      relocation: Optional[RelocationStore],
                      summary: IngestSummary):
        info = scanned.info
        type_id = registry.resolve(info.type_label)

        existing = catalog.find(info.content_hash, info.size)
        if existing:
            logging.debug(f"{summary.processed} - Updating:  {scanned.path}")
            catalog.merge_tags(existing.id, scanned.tokens.tags)
        else:
            logging.debug(f"{summary.processed} - Inserting: {scanned.path}")
            catalog.insert(
                scanned.tokens.display_name,
                storable_text(scanned.path),
                type_id,
                info.size,
                info.content_hash,
                scanned.tokens.tags,
            )
            summary.inserted += 1

            if relocation:
                try:
                    relocation.store(scanned.path, info.content_hash, info.size, scanned.extension)
                except FileOperationError as e:
                    # Catalog row stays, only the copy is missing
                    logging.error(str(e))
                    summary.relocation_failures.append(scanned.path)

        summary.processed += 1

    def stats(self) -> CatalogStats:
        """Totals for the whole catalog, not just the last run."""
        with self.db_manager as conn:
            catalog = CatalogStore(conn)
            registry = TypeRegistry(conn)
            return CatalogStats(
                pictures=catalog.count(),
                types=registry.count(),
                total_dupes=catalog.total_dupes(),
            )
