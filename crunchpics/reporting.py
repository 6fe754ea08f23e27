import csv
import logging
from pathlib import Path
from typing import List

from .database.ops import CatalogStore
from .database.types import TypeRegistry
from .models import CatalogStats, IngestSummary

SEPARATOR = "-------------------------------"


def format_summary(summary: IngestSummary, stats: CatalogStats) -> List[str]:
    """End of run lines: this run's counters, then catalog-wide totals."""
    lines = [
        SEPARATOR,
        "Processing completed.",
        SEPARATOR,
        f"{summary.processed} files processed.",
        f"{summary.inserted} new.",
        f"{summary.duplicates} duplicates.",
    ]
    if summary.failed:
        lines.append(f"{summary.failed} files could not be read.")
    if summary.relocation_failures:
        lines.append(f"{len(summary.relocation_failures)} files could not be copied to the destination:")
        lines.extend(f"  {p}" for p in summary.relocation_failures)
    lines.append(f"{stats.pictures} unique entries in database currently.")
    lines.append(f"{stats.types} types found total.")
    return lines


class ReportGenerator:
    def __init__(self, catalog: CatalogStore, registry: TypeRegistry):
        self.catalog = catalog
        self.registry = registry

    def export_catalog(self, output_csv: Path) -> int:
        """
        Writes one CSV row per cataloged picture, with the type label
        resolved and tags joined by ", ". Returns the number of rows written.
        """
        labels = {t.id: t.label for t in self.registry.all()}

        headers = ["Id", "Filename", "First Path", "Type", "Size", "Hash", "Tags", "Duplicates"]
        logging.info(f"Exporting catalog -> {output_csv}")
        rows = 0

        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for rec in self.catalog.iter_all():
                writer.writerow([
                    rec.id,
                    rec.filename,
                    rec.path,
                    labels.get(rec.type_id, ""),
                    rec.size,
                    rec.content_hash,
                    ", ".join(sorted(rec.tags)),
                    rec.dupe_count,
                ])
                rows += 1

        logging.info(f"Exported {rows} catalog entries.")
        return rows
