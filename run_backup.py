"""
Backup Runner - Command-Line Backup, Restore and CSV Transfer
==============================================================

    python run_backup.py export [--dir backups]
    python run_backup.py restore vats-rental-backup-2025-01-31.json [--dry-run]
    python run_backup.py export-csv customers [--dir exports]
    python run_backup.py import-csv customers customers.csv
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rental_backoffice.application import BackupService
from rental_backoffice.domain.models import REQUIRED_ENTITY_KINDS
from rental_backoffice.errors import SourceUnavailable
from rental_backoffice.infrastructure.config import get_settings
from rental_backoffice.infrastructure.persistence import Database

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def cmd_export(args, db: Database, service: BackupService) -> int:
    try:
        snapshot = asyncio.run(service.create_snapshot(db))
    except SourceUnavailable as e:
        print(f"Backup failed: {e}")
        return 1

    metadata = service.write_backup(snapshot, Path(args.dir) if args.dir else None)
    counts = ", ".join(f"{n} {kind}" for kind, n in metadata.record_count.items() if n)
    print(f"Backup written: {metadata.filename} ({metadata.size} bytes)")
    print(f"   {counts or 'no records'}")
    return 0


def cmd_restore(args, db: Database, service: BackupService) -> int:
    report = service.read_backup(args.path)
    if not report.success:
        print(f"Restore failed: {report.message}")
        return 1

    if args.dry_run:
        print(f"Backup is valid: {report.summary} (dry run, nothing written)")
        return 0

    db.replace_all(report.snapshot)
    print(report.message)
    return 0


def cmd_export_csv(args, db: Database, service: BackupService) -> int:
    exported = service.export_csv(args.kind, db.get_records(args.kind))
    if exported is None:
        print(f"No {args.kind} to export")
        return 0

    filename, text = exported
    directory = Path(args.dir)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / filename).write_text(text, encoding="utf-8")
    print(f"Exported {args.kind}: {directory / filename}")
    return 0


def cmd_import_csv(args, db: Database, service: BackupService) -> int:
    try:
        text = Path(args.path).read_text(encoding="utf-8-sig")
    except OSError as e:
        print(f"Cannot read {args.path}: {e}")
        return 1

    result = service.import_csv(args.kind, text)
    if not result.success:
        print(f"Import failed: {result.message}")
        return 1

    db.add_records(args.kind, result.records)
    print(result.message)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Back up, restore and transfer rental data")
    sub = parser.add_subparsers(dest="command", required=True)

    p_export = sub.add_parser("export", help="Write a JSON backup")
    p_export.add_argument("--dir", help="Output directory (default: BACKUP_DIR)")
    p_export.set_defaults(handler=cmd_export)

    p_restore = sub.add_parser("restore", help="Restore from a JSON backup")
    p_restore.add_argument("path", help="Backup file")
    p_restore.add_argument("--dry-run", "-n", action="store_true", help="Validate without writing")
    p_restore.set_defaults(handler=cmd_restore)

    p_csv_out = sub.add_parser("export-csv", help="Export one entity kind as CSV")
    p_csv_out.add_argument("kind", choices=REQUIRED_ENTITY_KINDS)
    p_csv_out.add_argument("--dir", default=".", help="Output directory")
    p_csv_out.set_defaults(handler=cmd_export_csv)

    p_csv_in = sub.add_parser("import-csv", help="Append records from a CSV file")
    p_csv_in.add_argument("kind", choices=REQUIRED_ENTITY_KINDS)
    p_csv_in.add_argument("path", help="CSV file")
    p_csv_in.set_defaults(handler=cmd_import_csv)

    args = parser.parse_args()

    settings = get_settings()
    db = Database(settings.database_file)
    db.init()
    service = BackupService(settings.backup)

    sys.exit(args.handler(args, db, service))


if __name__ == "__main__":
    main()
