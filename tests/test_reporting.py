import csv
from pathlib import Path

from crunchpics.models import CatalogStats, IngestSummary
from crunchpics.reporting import ReportGenerator, format_summary


def test_format_summary():
    summary = IngestSummary(processed=5, inserted=3)
    lines = format_summary(summary, CatalogStats(pictures=10, types=2, total_dupes=4))

    assert "5 files processed." in lines
    assert "3 new." in lines
    assert "2 duplicates." in lines
    assert "10 unique entries in database currently." in lines
    assert "2 types found total." in lines
    assert not any("could not" in line for line in lines)


def test_format_summary_reports_failures():
    summary = IngestSummary(processed=1, inserted=1, failed=2, relocation_failures=[Path("/src/a.jpg")])
    lines = format_summary(summary, CatalogStats(pictures=1, types=1, total_dupes=0))

    assert "2 files could not be read." in lines
    assert "1 files could not be copied to the destination:" in lines
    assert "  /src/a.jpg" in lines


def test_summary_merge():
    total = IngestSummary(processed=2, inserted=1)
    total.merge(IngestSummary(processed=3, inserted=3, failed=1, relocation_failures=[Path("x")]))
    assert (total.processed, total.inserted, total.duplicates, total.failed) == (5, 4, 1, 1)
    assert total.relocation_failures == [Path("x")]


def test_export_catalog(tmp_path, catalog, registry):
    jpeg = registry.resolve("JPEG image data")
    rec = catalog.insert("p.jpg", "/pics/2020/p.jpg", jpeg, 12, "h1", ["pics", "2020"])
    catalog.merge_tags(rec.id, ["2021"])
    catalog.insert("q.png", "/pics/q.png", registry.resolve("PNG image data"), 7, "h2", ["pics"])

    out = tmp_path / "catalog.csv"
    rows = ReportGenerator(catalog, registry).export_catalog(out)
    assert rows == 2

    with open(out, newline="", encoding="utf-8") as f:
        reader = list(csv.DictReader(f))

    assert reader[0]["Filename"] == "p.jpg"
    assert reader[0]["Type"] == "JPEG image data"
    assert reader[0]["Tags"] == "2020, 2021, pics"
    assert reader[0]["Duplicates"] == "1"
    assert reader[1]["Hash"] == "h2"
