#!/usr/bin/env python

import argparse
import sqlite3
from pathlib import Path
from typing import Dict

from crunchpics.database.ops import CatalogStore
from crunchpics.database.types import TypeRegistry


def connect_db(db_path: Path) -> sqlite3.Connection:
    if not db_path.exists():
        raise SystemExit(f"DB not found: {db_path}")
    return sqlite3.connect(db_path)


def _type_labels(conn: sqlite3.Connection) -> Dict[int, str]:
    return {t.id: t.label for t in TypeRegistry(conn).all()}


def _print_records(records, labels: Dict[int, str]):
    print("id     | dupes | size       | type                      | filename")
    print("-------+-------+------------+---------------------------+----------")
    for rec in records:
        label = labels.get(rec.type_id, "")[:25]
        print(f"{rec.id:6d} | {rec.dupe_count:5d} | {str(rec.size).rjust(10)} | {label.ljust(25)} | {rec.filename}")


def show_stats(conn: sqlite3.Connection):
    catalog = CatalogStore(conn)
    print(f"{catalog.count()} unique entries in database currently.")
    print(f"{catalog.total_dupes()} duplicates seen in total.")
    print(f"{TypeRegistry(conn).count()} types found total.")


def list_types(conn: sqlite3.Connection):
    cur = conn.cursor()
    cur.execute("""
        SELECT t.id, t.label, COUNT(p.id)
        FROM types t
        LEFT JOIN pictures p ON p.type_id = t.id
        GROUP BY t.id
        ORDER BY COUNT(p.id) DESC, t.id
    """)
    print("id   | pictures | label")
    print("-----+----------+------")
    for type_id, label, n in cur.fetchall():
        print(f"{type_id:4d} | {str(n).rjust(8)} | {label}")


def list_by_tag(conn: sqlite3.Connection, tag: str):
    records = CatalogStore(conn).find_by_tag(tag)
    if not records:
        print(f"No pictures tagged '{tag}'.")
        return
    print(f"Pictures tagged '{tag}':")
    _print_records(records, _type_labels(conn))


def list_dupes(conn: sqlite3.Connection, limit: int):
    records = CatalogStore(conn).most_duplicated(limit)
    if not records:
        print("No duplicates found.")
        return
    print(f"Most duplicated pictures (top {limit}):")
    _print_records(records, _type_labels(conn))


def show_picture(conn: sqlite3.Connection, pic_id: int):
    rec = CatalogStore(conn).get(pic_id)
    if rec is None:
        print(f"No picture with id={pic_id}")
        return

    label = _type_labels(conn).get(rec.type_id, "")
    print("Picture:")
    print(f"  id:          {rec.id}")
    print(f"  filename:    {rec.filename}")
    print(f"  first path:  {rec.path}")
    print(f"  type:        {label}")
    print(f"  size:        {rec.size}")
    print(f"  hash:        {rec.content_hash}")
    print(f"  duplicates:  {rec.dupe_count}")
    print(f"  tags:        {', '.join(sorted(rec.tags))}")


def parse_args():
    p = argparse.ArgumentParser(description="Query helper for the crunchpics SQLite catalog.")
    p.add_argument("--db", required=True, help="Path to the catalog (crunchpics.db)")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--stats", action="store_true", help="Show catalog totals")
    group.add_argument("--types", action="store_true", help="List known file types")
    group.add_argument("--tag", help="List pictures carrying this tag")
    group.add_argument("--dupes", type=int, nargs="?", const=10, help="List the N most duplicated pictures")
    group.add_argument("--id", type=int, dest="pic_id", help="Show details for a picture by id")
    return p.parse_args()


def main():
    args = parse_args()
    db_path = Path(args.db).resolve()
    conn = connect_db(db_path)

    try:
        if args.stats:
            show_stats(conn)
        elif args.types:
            list_types(conn)
        elif args.tag is not None:
            list_by_tag(conn, args.tag)
        elif args.dupes is not None:
            list_dupes(conn, args.dupes)
        elif args.pic_id is not None:
            show_picture(conn, args.pic_id)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
