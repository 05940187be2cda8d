"""Shared fixtures: zero-latency settings and recording message providers."""

from datetime import datetime, timezone

import pytest

from rental_backoffice.domain.models import Channel
from rental_backoffice.infrastructure.config import BackupSettings, MessagingSettings, Settings
from rental_backoffice.infrastructure.messaging import MessageProvider


class RecordingProvider(MessageProvider):
    """Provider that remembers every delivery and fails for chosen destinations."""

    def __init__(self, channel: Channel, fail_for=(), raise_for=()):
        self.channel = channel
        self.fail_for = set(fail_for)
        self.raise_for = dict(raise_for)
        self.delivered = []

    async def deliver(self, destination: str, content: str) -> bool:
        self.delivered.append((destination, content))
        if destination in self.raise_for:
            raise self.raise_for[destination]
        return destination not in self.fail_for


@pytest.fixture
def fixed_now():
    return datetime(2025, 1, 31, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def messaging_settings():
    return MessagingSettings(
        bulk_delay_seconds=0,
        sms_latency_seconds=0,
        whatsapp_latency_seconds=0,
        email_latency_seconds=0,
        business_phone="+91 9000000000",
    )


@pytest.fixture
def backup_settings(tmp_path):
    return BackupSettings(product_prefix="vats-rental", backup_dir=tmp_path / "backups")


@pytest.fixture
def settings(tmp_path, messaging_settings, backup_settings):
    return Settings(
        backup=backup_settings,
        messaging=messaging_settings,
        database_file=tmp_path / "test.db",
    )


@pytest.fixture
def providers():
    return {channel: RecordingProvider(channel) for channel in Channel}
