"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables
- Settings are immutable dataclasses
- Services receive their values from here once, at construction time

EXTENSIBILITY:
- To plug in a real SMS/WhatsApp gateway: add provider credentials here
- To change backup naming: set BACKUP_PRODUCT_PREFIX
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file if present (development convenience)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


@dataclass(frozen=True)
class BackupSettings:
    """Backup envelope and export file settings."""

    # Used in file names: <prefix>-backup-<date>.json, <prefix>-<kind>-<date>.csv
    product_prefix: str = field(
        default_factory=lambda: os.getenv("BACKUP_PRODUCT_PREFIX", "vats-rental")
    )

    # Written into every snapshot; restores only accept known versions
    schema_version: str = "1.0.0"
    supported_versions: tuple = ("1.0.0",)

    backup_dir: Path = field(
        default_factory=lambda: Path(os.getenv("BACKUP_DIR", "backups"))
    )


@dataclass(frozen=True)
class MessagingSettings:
    """Outbound communication settings."""

    # RATE LIMIT: pause after every message of a bulk send (seconds)
    bulk_delay_seconds: float = field(
        default_factory=lambda: _env_float("BULK_DELAY_SECONDS", 0.2)
    )

    # Unit cost per message, in rupees
    sms_cost: float = 0.50
    whatsapp_cost: float = 0.25
    email_cost: float = 0.10

    # Simulated provider round-trip (seconds)
    sms_latency_seconds: float = field(
        default_factory=lambda: _env_float("SMS_LATENCY_SECONDS", 1.0)
    )
    whatsapp_latency_seconds: float = field(
        default_factory=lambda: _env_float("WHATSAPP_LATENCY_SECONDS", 1.5)
    )
    email_latency_seconds: float = field(
        default_factory=lambda: _env_float("EMAIL_LATENCY_SECONDS", 0.8)
    )

    # Filled into the {phone} placeholder of the default templates
    business_phone: str = field(
        default_factory=lambda: os.getenv("BUSINESS_PHONE", "")
    )


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from rental_backoffice.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.backup.product_prefix)
    """

    backup: BackupSettings = field(default_factory=BackupSettings)
    messaging: MessagingSettings = field(default_factory=MessagingSettings)

    database_file: Path = field(
        default_factory=lambda: Path(os.getenv("DATABASE_FILE", "vats_rental.db"))
    )

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if self.backup.schema_version not in self.backup.supported_versions:
            issues.append(
                f"ERROR: schema version {self.backup.schema_version} is not in "
                f"supported versions {self.backup.supported_versions}."
            )

        if self.messaging.bulk_delay_seconds < 0:
            issues.append("ERROR: BULK_DELAY_SECONDS must not be negative.")

        if not self.messaging.business_phone:
            issues.append(
                "WARNING: BUSINESS_PHONE not set. "
                "Templates will keep the {phone} placeholder."
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
