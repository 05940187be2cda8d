"""
Channel Dispatcher - Single-Message Delivery and Communication Log
===================================================================

Sends one message through one channel and records the outcome.

FAILURE POLICY:
- Provider failures never escape send(): they become a FAILED record
- TemplateNotFound is a caller bug and is raised
- Email templates are not routable through send_templated() (returns False)

The communication log is append-only and owned by this object. Records are
immutable; get_logs() returns copies.
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from ..domain.models import Channel, DispatchRecord, DispatchStatus, MessageTemplate
from ..domain.templates import TemplateRegistry, missing_variables, render
from ..errors import UnsupportedChannelForTemplate
from ..infrastructure.config import MessagingSettings, get_settings
from ..infrastructure.messaging import MessageProvider, default_providers

logger = logging.getLogger(__name__)

# Channels a template may be routed to by send_templated()
TEMPLATE_CHANNELS = (Channel.SMS, Channel.WHATSAPP)

RECENT_ACTIVITY_LIMIT = 10


class ChannelDispatcher:
    """
    Delivers messages through per-channel providers.

    USAGE:
        dispatcher = ChannelDispatcher(templates=TemplateRegistry())
        record = await dispatcher.send(Channel.SMS, "+91 9876543210", "Hi!")
        ok = await dispatcher.send_templated("return_reminder", "+91 98...", {...})
    """

    def __init__(
        self,
        providers: Optional[Dict[Channel, MessageProvider]] = None,
        templates: Optional[TemplateRegistry] = None,
        settings: Optional[MessagingSettings] = None,
    ):
        settings = settings or get_settings().messaging
        self._providers = providers if providers is not None else default_providers(settings)
        self._templates = templates or TemplateRegistry()
        self._costs = {
            Channel.SMS: settings.sms_cost,
            Channel.WHATSAPP: settings.whatsapp_cost,
            Channel.EMAIL: settings.email_cost,
        }
        self._logs: List[DispatchRecord] = []

    @property
    def templates(self) -> TemplateRegistry:
        return self._templates

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: str,
        recipient_id: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> DispatchRecord:
        """
        Attempt one delivery and append the outcome to the log.
        Delivery failures produce a FAILED record instead of an exception.
        """
        channel = Channel(channel)
        provider = self._providers.get(channel)

        try:
            if provider is None:
                raise LookupError(f"No provider configured for {channel.value}")
            delivered = await provider.deliver(destination, message)
        except Exception as e:
            logger.warning(f"{channel.value} delivery to {destination} failed: {e}")
            delivered = False

        record = DispatchRecord(
            id=uuid.uuid4().hex,
            channel=channel,
            rendered_message=message,
            status=DispatchStatus.SENT if delivered else DispatchStatus.FAILED,
            timestamp=datetime.now(timezone.utc),
            recipient_id=recipient_id or "unknown",
            recipient_name=recipient_name or "Unknown",
            cost=self._costs[channel] if delivered else None,
        )
        self._logs.append(record)

        if not delivered:
            logger.info(f"Recorded failed {channel.value} dispatch for {record.recipient_name}")
        return record

    async def send_sms(self, phone: str, message: str, customer_id: Optional[str] = None,
                       customer_name: Optional[str] = None) -> bool:
        record = await self.send(Channel.SMS, phone, message, customer_id, customer_name)
        return record.succeeded

    async def send_whatsapp(self, phone: str, message: str, customer_id: Optional[str] = None,
                            customer_name: Optional[str] = None) -> bool:
        record = await self.send(Channel.WHATSAPP, phone, message, customer_id, customer_name)
        return record.succeeded

    async def send_email(self, email: str, subject: str, message: str, customer_id: Optional[str] = None,
                         customer_name: Optional[str] = None) -> bool:
        record = await self.send(Channel.EMAIL, email, f"{subject}: {message}", customer_id, customer_name)
        return record.succeeded

    async def send_templated(
        self,
        template_id: str,
        destination: str,
        variables: Mapping[str, str],
        recipient_id: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> bool:
        """
        Render a registered template and send it on the template's channel.

        Raises:
            TemplateNotFound: unknown template id
        """
        template = self._templates.get(template_id)

        try:
            channel = self._template_channel(template)
        except UnsupportedChannelForTemplate as e:
            logger.warning(str(e))
            return False

        missing = missing_variables(template, variables)
        if missing:
            logger.warning(f"Template '{template_id}' sent with unresolved placeholders: {missing}")

        message = render(template, variables)
        record = await self.send(channel, destination, message, recipient_id, recipient_name)
        return record.succeeded

    @staticmethod
    def _template_channel(template: MessageTemplate) -> Channel:
        if template.channel not in TEMPLATE_CHANNELS:
            raise UnsupportedChannelForTemplate(
                f"Template '{template.id}' uses {template.channel.value}, "
                f"which cannot be sent as a template"
            )
        return template.channel

    # ── Communication log ──────────────────────────────────────────

    def get_logs(self, customer_id: Optional[str] = None) -> List[DispatchRecord]:
        """
        Logs for one customer in send order, or all logs newest first.
        The underlying log keeps its append order.
        """
        if customer_id:
            return [log for log in self._logs if log.recipient_id == customer_id]
        return list(reversed(self._logs))

    def get_stats(self) -> dict:
        """Totals, cost and per-channel breakdown of the communication log."""
        by_channel: Dict[str, dict] = defaultdict(lambda: {"count": 0, "cost": 0.0})
        for log in self._logs:
            entry = by_channel[log.channel.value]
            entry["count"] += 1
            entry["cost"] += log.cost or 0

        return {
            "total_sent": sum(1 for log in self._logs if log.succeeded),
            "total_failed": sum(1 for log in self._logs if log.status == DispatchStatus.FAILED),
            "total_cost": round(sum(log.cost or 0 for log in self._logs), 2),
            "by_channel": dict(by_channel),
            "recent_activity": self.get_logs()[:RECENT_ACTIVITY_LIMIT],
        }
