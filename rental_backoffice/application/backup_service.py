"""
Backup Service - Snapshot Export, Restore and CSV Transfer
===========================================================

Builds a versioned JSON snapshot of cars, customers and bookings, and
validates one before it is restored.

CONTRACT:
- create_snapshot() reads every entity kind concurrently from the
  data-access layer; any read failure aborts with SourceUnavailable
- validate_structure() only checks the envelope shape (list-typed entity
  kinds, string timestamp/version). Record contents are not inspected.
- restore()/import_csv() never raise for bad input: they return a
  RestoreReport / ImportResult with success=False
- Writing restored data is the storage layer's job (Database.replace_all)
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol, Tuple, Union

from ..domain import csv_codec
from ..domain.models import (
    BackupMetadata,
    ImportResult,
    Record,
    RestoreReport,
    Snapshot,
    REQUIRED_ENTITY_KINDS,
    OPTIONAL_ENTITY_KINDS,
)
from ..errors import EmptyFile, MalformedInput, SourceUnavailable, StructuralValidationFailed
from ..infrastructure.config import BackupSettings, get_settings
from .dispatcher import ChannelDispatcher

logger = logging.getLogger(__name__)

RESTORE_FORMAT_ERROR = "Failed to restore backup. Please check the file format."
INVALID_STRUCTURE = "Invalid backup file structure"


class DataSource(Protocol):
    """Data-access interface consumed by create_snapshot()."""

    async def get_cars(self) -> List[Record]: ...

    async def get_customers(self) -> List[Record]: ...

    async def get_bookings(self) -> List[Record]: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BackupService:
    """
    Snapshot and CSV transfer service.

    USAGE:
        service = BackupService()
        snapshot = await service.create_snapshot(db)
        text = service.serialize(snapshot)

        report = service.restore_from_text(text)
        if report.success:
            db.replace_all(report.snapshot)
    """

    def __init__(
        self,
        settings: Optional[BackupSettings] = None,
        dispatcher: Optional[ChannelDispatcher] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._settings = settings or get_settings().backup
        self._dispatcher = dispatcher
        self._clock = clock

    # ── Snapshot lifecycle ─────────────────────────────────────────

    async def create_snapshot(self, source: DataSource) -> Snapshot:
        """
        Capture every entity kind from the data source.

        Raises:
            SourceUnavailable: any of the reads failed
        """
        try:
            cars, customers, bookings = await asyncio.gather(
                source.get_cars(),
                source.get_customers(),
                source.get_bookings(),
            )
        except Exception as e:
            logger.exception(f"Error creating backup: {e}")
            raise SourceUnavailable(f"Failed to create backup: {e}") from e

        entities = {
            "cars": [dict(r) for r in cars],
            "customers": [dict(r) for r in customers],
            "bookings": [dict(r) for r in bookings],
            "maintenanceRecords": [],
            "communicationLogs": [],
        }
        if self._dispatcher is not None:
            # get_logs() is newest first; the backup keeps send order
            entities["communicationLogs"] = [
                log.to_dict() for log in reversed(self._dispatcher.get_logs())
            ]

        snapshot = Snapshot(
            entities=entities,
            timestamp=_iso_timestamp(self._clock()),
            version=self._settings.schema_version,
        )
        logger.info(
            f"Snapshot created: {snapshot.count('cars')} cars, "
            f"{snapshot.count('customers')} customers, {snapshot.count('bookings')} bookings"
        )
        return snapshot

    def serialize(self, snapshot: Snapshot) -> str:
        """Pretty-printed JSON envelope."""
        return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)

    def deserialize(self, text: Union[str, bytes]) -> Snapshot:
        """
        Parse a serialized snapshot.

        Raises:
            MalformedInput: not valid JSON
            StructuralValidationFailed: valid JSON with the wrong shape
        """
        data = self._parse(text)
        if not self.validate_structure(data):
            logger.warning("Backup rejected: invalid backup structure")
            raise StructuralValidationFailed(INVALID_STRUCTURE)
        return Snapshot.from_dict(data)

    @staticmethod
    def validate_structure(candidate: Any) -> bool:
        """True iff the candidate has the backup envelope shape."""
        if not isinstance(candidate, dict):
            return False
        if not all(isinstance(candidate.get(kind), list) for kind in REQUIRED_ENTITY_KINDS):
            return False
        return isinstance(candidate.get("timestamp"), str) and isinstance(candidate.get("version"), str)

    def restore(self, candidate: Union[Snapshot, dict]) -> RestoreReport:
        """
        Validate a snapshot and report what it would restore.
        The caller hands report.snapshot to the storage layer.
        """
        if isinstance(candidate, Snapshot):
            # to_dict fills absent kinds, so check the entities themselves
            complete = all(isinstance(candidate.entities.get(kind), list) for kind in REQUIRED_ENTITY_KINDS)
            data = candidate.to_dict() if complete else None
        else:
            data = candidate

        if not self.validate_structure(data):
            logger.warning("Restore rejected: invalid backup structure")
            return RestoreReport(success=False, message=INVALID_STRUCTURE)

        if data["version"] not in self._settings.supported_versions:
            logger.warning(f"Restore rejected: unsupported backup version {data['version']}")
            return RestoreReport(success=False, message=f"Unsupported backup version: {data['version']}")

        snapshot = Snapshot.from_dict(data)
        summary = (
            f"{snapshot.count('cars')} cars, {snapshot.count('customers')} customers, "
            f"{snapshot.count('bookings')} bookings restored."
        )
        logger.info(f"Restoring backup from {snapshot.timestamp}: {summary}")
        return RestoreReport(
            success=True,
            message=f"Backup restored successfully. {summary}",
            summary=summary,
            snapshot=snapshot,
        )

    def restore_from_text(self, text: Union[str, bytes]) -> RestoreReport:
        """Parse and restore; parse errors become a failure report."""
        try:
            data = self._parse(text)
        except MalformedInput as e:
            logger.error(f"Error restoring backup: {e}")
            return RestoreReport(success=False, message=RESTORE_FORMAT_ERROR)
        return self.restore(data)

    @staticmethod
    def _parse(text: Union[str, bytes]) -> Any:
        try:
            return json.loads(text)
        except (TypeError, ValueError) as e:
            logger.warning(f"Backup is not valid JSON: {e}")
            raise MalformedInput(f"Backup is not valid JSON: {e}") from e

    # ── File naming / storage ──────────────────────────────────────

    def _date_stamp(self) -> str:
        return self._clock().astimezone(timezone.utc).date().isoformat()

    def backup_filename(self) -> str:
        return f"{self._settings.product_prefix}-backup-{self._date_stamp()}.json"

    def csv_filename(self, kind: str) -> str:
        return f"{self._settings.product_prefix}-{kind}-{self._date_stamp()}.csv"

    def write_backup(self, snapshot: Snapshot, directory: Optional[Path] = None) -> BackupMetadata:
        """Write the serialized snapshot to a dated file and describe it."""
        directory = Path(directory) if directory is not None else self._settings.backup_dir
        directory.mkdir(parents=True, exist_ok=True)

        filename = self.backup_filename()
        content = self.serialize(snapshot).encode("utf-8")
        (directory / filename).write_bytes(content)

        metadata = BackupMetadata(
            id=uuid.uuid4().hex,
            filename=filename,
            size=len(content),
            timestamp=snapshot.timestamp,
            record_count={
                kind: snapshot.count(kind)
                for kind in REQUIRED_ENTITY_KINDS + OPTIONAL_ENTITY_KINDS
            },
        )
        logger.info(f"Backup written: {directory / filename} ({metadata.size} bytes)")
        return metadata

    def read_backup(self, path: Union[str, Path]) -> RestoreReport:
        """Load a backup file and restore it."""
        try:
            content = Path(path).read_bytes()
        except OSError as e:
            logger.error(f"Cannot read backup file {path}: {e}")
            return RestoreReport(success=False, message=f"Cannot read backup file: {path}")
        return self.restore_from_text(content)

    # ── CSV export/import ──────────────────────────────────────────

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in REQUIRED_ENTITY_KINDS:
            raise ValueError(f"Unknown entity kind: {kind}. Use one of {', '.join(REQUIRED_ENTITY_KINDS)}")

    def export_csv(self, kind: str, records: List[Record]) -> Optional[Tuple[str, str]]:
        """
        Encode records of one kind.

        Returns:
            (filename, csv_text), or None when there is nothing to export
        """
        self._check_kind(kind)
        if not records:
            logger.info(f"No {kind} to export")
            return None
        return self.csv_filename(kind), csv_codec.encode(records)

    def import_csv(self, kind: str, text: str) -> ImportResult:
        """Decode CSV text for one kind into records."""
        self._check_kind(kind)
        try:
            records = csv_codec.decode(text)
        except EmptyFile as e:
            logger.warning(f"CSV import of {kind} rejected: {e}")
            return ImportResult(success=False, message=str(e))
        except MalformedInput as e:
            logger.error(f"Error importing CSV: {e}")
            return ImportResult(
                success=False,
                message="Failed to import CSV file. Please check the file format.",
            )

        return self.import_records(kind, records)

    def import_records(self, kind: str, records: List[Record]) -> ImportResult:
        """Wrap already-parsed records (e.g. from a spreadsheet) as an import result."""
        self._check_kind(kind)
        return ImportResult(
            success=True,
            message=f"Successfully imported {len(records)} {kind} records",
            records=list(records),
        )
