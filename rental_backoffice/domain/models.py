"""
Domain Models - Snapshots, Templates and Dispatch Records
==========================================================

Plain dataclasses with no external dependencies.

Records are schema-free: each entity instance is a dict of field name to
scalar value, exactly as the data-access layer hands it over.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

Scalar = Union[str, int, float, bool, None]
Record = Dict[str, Any]

REQUIRED_ENTITY_KINDS = ("cars", "customers", "bookings")
OPTIONAL_ENTITY_KINDS = ("maintenanceRecords", "communicationLogs")


class Channel(str, Enum):
    """Communication channel."""
    SMS = "sms"
    WHATSAPP = "whatsapp"
    EMAIL = "email"


class DispatchStatus(str, Enum):
    """
    Outcome of a dispatch attempt.

    DELIVERED is reserved for providers that report delivery receipts;
    the simulated providers only ever produce SENT or FAILED.
    """
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class Snapshot:
    """Versioned, timestamped capture of the full entity dataset."""
    entities: Dict[str, List[Record]]
    timestamp: str
    version: str

    def count(self, kind: str) -> int:
        return len(self.entities.get(kind, []))

    def to_dict(self) -> Dict[str, Any]:
        """Flat JSON envelope, entity kinds first."""
        data: Dict[str, Any] = {}
        for kind in REQUIRED_ENTITY_KINDS + OPTIONAL_ENTITY_KINDS:
            data[kind] = list(self.entities.get(kind, []))
        data["timestamp"] = self.timestamp
        data["version"] = self.version
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        """Build from an envelope that already passed structural validation."""
        entities = {
            kind: list(data[kind]) for kind in REQUIRED_ENTITY_KINDS
        }
        for kind in OPTIONAL_ENTITY_KINDS:
            value = data.get(kind)
            entities[kind] = list(value) if isinstance(value, list) else []
        return cls(entities=entities, timestamp=data["timestamp"], version=data["version"])


@dataclass(frozen=True)
class BackupMetadata:
    """Describes a backup file written to storage."""
    id: str
    filename: str
    size: int
    timestamp: str
    record_count: Dict[str, int]


@dataclass
class RestoreReport:
    """Result of a restore attempt. Failures are reported, not raised."""
    success: bool
    message: str
    summary: str = ""
    snapshot: Optional[Snapshot] = None


@dataclass
class ImportResult:
    """Result of a CSV or spreadsheet import."""
    success: bool
    message: str
    records: List[Record] = field(default_factory=list)


@dataclass(frozen=True)
class MessageTemplate:
    """Message body with {name} placeholders for a given channel."""
    id: str
    name: str
    channel: Channel
    body: str
    required_variables: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "channel": self.channel.value,
            "body": self.body,
            "required_variables": list(self.required_variables),
        }


@dataclass(frozen=True)
class DispatchRecord:
    """One entry in the append-only communication log."""
    id: str
    channel: Channel
    rendered_message: str
    status: DispatchStatus
    timestamp: datetime
    recipient_id: str = "unknown"
    recipient_name: str = "Unknown"
    cost: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (DispatchStatus.SENT, DispatchStatus.DELIVERED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customerId": self.recipient_id,
            "customerName": self.recipient_name,
            "type": self.channel.value,
            "message": self.rendered_message,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "cost": self.cost,
        }


@dataclass(frozen=True)
class Recipient:
    """Bulk dispatch target."""
    destination: str
    recipient_id: Optional[str] = None
    recipient_name: Optional[str] = None


@dataclass(frozen=True)
class BulkDispatchResult:
    """Aggregate tally of a bulk dispatch."""
    sent_count: int = 0
    failed_count: int = 0

    @property
    def total(self) -> int:
        return self.sent_count + self.failed_count
