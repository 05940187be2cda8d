"""
Messaging Provider - Abstraction Layer for Outbound Channels
=============================================================

One provider per channel (SMS, WhatsApp, Email). The dispatcher only sees
deliver(destination, content) and treats every provider as unreliable: a
False return or an exception both count as a failed delivery, and nothing
is retried here.

Currently all channels use simulated providers that log the message and
wait for a configurable round-trip. A gateway integration (MSG91, Twilio,
WhatsApp Cloud API, SMTP) only needs to implement MessageProvider.

USAGE:
    provider = SimulatedSmsProvider(latency_seconds=0)
    await provider.deliver("+91 9876543210", "Hello!")
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ...domain.models import Channel
from ...errors import ProviderDeliveryFailed
from ..config import MessagingSettings, get_settings

logger = logging.getLogger(__name__)


class MessageProvider(ABC):
    """
    Abstract base class for messaging providers.
    Implement this interface to add new messaging backends.
    """

    channel: Channel

    @abstractmethod
    async def deliver(self, destination: str, content: str) -> bool:
        """
        Deliver content to a destination.

        Returns True if the provider accepted the message. May return False
        or raise ProviderDeliveryFailed when it did not.
        """
        ...


class SimulatedProvider(MessageProvider):
    """
    Logs the message instead of calling a gateway.
    Waits latency_seconds to mimic the provider round-trip.
    """

    def __init__(self, latency_seconds: float = 0.0):
        self._latency = latency_seconds

    async def deliver(self, destination: str, content: str) -> bool:
        if not destination or not destination.strip():
            raise ProviderDeliveryFailed(f"{self.channel.value}: empty destination")

        logger.info(f"{self.channel.value.upper()} to {destination}: {content[:80]}")
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        return True


class SimulatedSmsProvider(SimulatedProvider):
    channel = Channel.SMS


class SimulatedWhatsAppProvider(SimulatedProvider):
    channel = Channel.WHATSAPP


class SimulatedEmailProvider(SimulatedProvider):
    channel = Channel.EMAIL

    async def deliver(self, destination: str, content: str) -> bool:
        if "@" not in destination:
            raise ProviderDeliveryFailed(f"email: invalid address {destination!r}")
        return await super().deliver(destination, content)


def default_providers(settings: Optional[MessagingSettings] = None) -> Dict[Channel, MessageProvider]:
    """Simulated provider for every channel, using configured latencies."""
    settings = settings or get_settings().messaging
    return {
        Channel.SMS: SimulatedSmsProvider(settings.sms_latency_seconds),
        Channel.WHATSAPP: SimulatedWhatsAppProvider(settings.whatsapp_latency_seconds),
        Channel.EMAIL: SimulatedEmailProvider(settings.email_latency_seconds),
    }
