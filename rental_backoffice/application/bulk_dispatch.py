"""
Bulk Dispatch - Paced Delivery to Many Recipients
==================================================

Sends the same message to every recipient, one at a time, in input order.

SAFETY:
- A fixed pause follows every dispatch (success or failure) to stay under
  gateway rate limits
- A failure at one recipient never stops the batch
- Not idempotent: re-running resends to everyone. Callers that need to
  retry a partial batch must track who was already reached.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from ..domain.models import BulkDispatchResult, Channel, Recipient, Record
from ..infrastructure.config import get_settings
from .dispatcher import ChannelDispatcher

logger = logging.getLogger(__name__)


def recipients_from_customers(customers: Iterable[Record], field: str = "phone") -> List[Recipient]:
    """Customer records with a non-empty contact field, in stored order."""
    recipients = []
    for customer in customers:
        destination = str(customer.get(field) or "").strip()
        if not destination:
            continue
        customer_id = customer.get("customerId") or customer.get("id")
        recipients.append(Recipient(
            destination=destination,
            recipient_id=str(customer_id) if customer_id is not None else None,
            recipient_name=customer.get("name") or None,
        ))
    return recipients


class BulkDispatcher:
    """
    Sequential bulk sender on top of ChannelDispatcher.

    USAGE:
        bulk = BulkDispatcher(dispatcher)
        result = await bulk.send_bulk(recipients, "Office closed on Sunday", Channel.SMS)
        print(result.sent_count, result.failed_count)
    """

    def __init__(
        self,
        dispatcher: ChannelDispatcher,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._dispatcher = dispatcher
        self._delay = get_settings().messaging.bulk_delay_seconds if delay_seconds is None else delay_seconds
        self._sleep = sleep

    async def send_bulk(
        self,
        recipients: Sequence[Recipient],
        message: str,
        channel: Channel = Channel.SMS,
    ) -> BulkDispatchResult:
        """Dispatch to each recipient in order and return the final tally."""
        channel = Channel(channel)
        sent = 0
        failed = 0

        logger.info(f"Bulk {channel.value} dispatch to {len(recipients)} recipients")

        for recipient in recipients:
            try:
                record = await self._dispatcher.send(
                    channel,
                    recipient.destination,
                    message,
                    recipient.recipient_id,
                    recipient.recipient_name,
                )
                if record.succeeded:
                    sent += 1
                else:
                    failed += 1
            except Exception as e:
                logger.exception(f"Error dispatching to {recipient.destination}: {e}")
                failed += 1

            await self._sleep(self._delay)

        logger.info(f"Bulk dispatch complete: {sent} sent, {failed} failed")
        return BulkDispatchResult(sent_count=sent, failed_count=failed)
