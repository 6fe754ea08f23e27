import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import config
from .core import CrunchPicsApp
from .database.ops import CatalogStore
from .database.types import TypeRegistry
from .exceptions import SetupError, StoreWriteError
from .reporting import ReportGenerator, format_summary
from .scanning.classifier import MagicClassifier


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, to a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def parse_args(argv: Optional[Sequence[str]] = None):
    p = argparse.ArgumentParser(
        description="Analyze the content of the passed folders to catalog pictures and find duplicates."
    )

    p.add_argument("roots", nargs="+", type=Path, metavar="FOLDER", help="Folders to scan recursively")

    p.add_argument("-d", "--db", type=Path, default=Path(config.DEFAULT_DB_FILENAME),
                   help=f"Catalog database filename (default: {config.DEFAULT_DB_FILENAME})")
    p.add_argument("-c", "--copy-to", type=Path, default=None, dest="destination",
                   help="Folder where unique files must be copied to (created if missing)")
    p.add_argument("-j", "--workers", type=int, default=config.DEFAULT_MAX_WORKERS,
                   help="Threads used for hashing (default: %(default)s)")
    p.add_argument("--progress", action="store_true", help="Show a progress bar")
    p.add_argument("--export-csv", type=Path, default=None, help="Write the whole catalog to a CSV file when done")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging (one line per file)")

    return p.parse_args(argv)


def validate_roots(roots: Sequence[Path]):
    for folder in roots:
        if not folder.is_dir():
            raise SetupError(f"Folder {folder} does not exist.")


def prepare_destination(destination: Optional[Path]):
    if destination is None or destination.is_dir():
        return
    if destination.exists():
        raise SetupError(f"Destination {destination} exists and is not a folder.")
    logging.info("Destination folder doesn't exist. Creating it.")
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SetupError(f"Could not create destination folder {destination}: {e}") from e


def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    # 1. Setup: everything that can fail before a single file is touched
    try:
        if args.workers < 1:
            raise SetupError("--workers must be at least 1.")
        validate_roots(args.roots)
        prepare_destination(args.destination)
        classifier = MagicClassifier()
    except SetupError as e:
        logging.error(str(e))
        sys.exit(1)

    logging.info("=== crunchpics started ===")
    logging.info(f"Catalog: {args.db}")
    if args.destination:
        logging.info(f"Copy unique files to: {args.destination}")

    # 2. Execution
    app = CrunchPicsApp(args.db, classifier=classifier)

    try:
        summary = app.ingest(
            args.roots,
            destination=args.destination,
            max_workers=args.workers,
            show_progress=args.progress,
        )
        stats = app.stats()

        if args.export_csv:
            with app.db_manager as conn:
                reporter = ReportGenerator(CatalogStore(conn), TypeRegistry(conn))
                reporter.export_catalog(args.export_csv)
    except StoreWriteError as e:
        logging.error(f"ERROR: Could not perform the following operation: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user. Catalog holds everything processed so far.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during cataloging.")
        sys.exit(1)

    for line in format_summary(summary, stats):
        print(line)

    sys.exit(0)


if __name__ == "__main__":
    main()
