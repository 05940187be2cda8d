"""
Broadcast Runner - Message Every Customer
==========================================

Sends one message to every stored customer with a phone number, one
customer at a time with a pause in between.

The message is either given literally or rendered from a registered
template. A template must be fully resolved by --var values: the broadcast
is refused if any placeholder would be left in the text.

NOTE: re-running resends to everyone.
"""

import argparse
import asyncio
import logging
import sys

from rental_backoffice.application import BulkDispatcher, ChannelDispatcher, recipients_from_customers
from rental_backoffice.domain.models import Channel
from rental_backoffice.domain.templates import missing_variables, render
from rental_backoffice.errors import TemplateNotFound
from rental_backoffice.infrastructure.config import get_settings
from rental_backoffice.infrastructure.persistence import Database

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_vars(pairs):
    """Turn ['key=value', ...] into a dict."""
    variables = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected key=value, got: {pair}")
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


def build_message(args, dispatcher: ChannelDispatcher) -> str:
    if args.message:
        return args.message

    template = dispatcher.templates.get(args.template)
    variables = parse_vars(args.var)
    business_phone = get_settings().messaging.business_phone
    if business_phone:
        variables.setdefault("phone", business_phone)

    missing = missing_variables(template, variables)
    if missing:
        raise ValueError(f"Template '{template.id}' needs: {', '.join(missing)}")
    return render(template, variables)


async def run_broadcast(args) -> int:
    """Run the broadcast and return a process exit code."""

    print("\n" + "=" * 60)
    print("   Vats Rental - Broadcast")
    print("=" * 60 + "\n")

    settings = get_settings()
    db = Database(settings.database_file)
    db.init()

    dispatcher = ChannelDispatcher(settings=settings.messaging)

    try:
        message = build_message(args, dispatcher)
    except (TemplateNotFound, ValueError) as e:
        print(f"Cannot build message: {e}")
        return 1

    recipients = recipients_from_customers(db.get_records("customers"))
    if not recipients:
        print("No customers with a phone number. Nothing to send.")
        return 0

    print(f"Channel:    {args.channel}")
    print(f"Recipients: {len(recipients)}")
    print(f"Message:    {message[:120]}\n")

    if args.dry_run:
        for r in recipients:
            print(f"   - {r.recipient_name or 'Unknown'} ({r.destination})")
        print("\nDry run: nothing sent.")
        return 0

    delay = settings.messaging.bulk_delay_seconds if args.delay is None else args.delay
    bulk = BulkDispatcher(dispatcher, delay_seconds=delay)
    result = await bulk.send_bulk(recipients, message, Channel(args.channel))

    stats = dispatcher.get_stats()
    print("\n" + "=" * 60)
    print("Broadcast Complete!")
    print(f"   Sent: {result.sent_count} | Failed: {result.failed_count} | Cost: ₹{stats['total_cost']:.2f}")
    print("=" * 60 + "\n")
    return 0 if result.failed_count == 0 else 2


def main():
    parser = argparse.ArgumentParser(description="Send one message to every customer")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--message", "-m", help="Literal message text")
    source.add_argument("--template", "-t", help="Template id (e.g. return_reminder)")

    parser.add_argument(
        "--var", action="append", metavar="KEY=VALUE",
        help="Template variable; repeat for several"
    )
    parser.add_argument(
        "--channel", "-c", choices=[Channel.SMS.value, Channel.WHATSAPP.value],
        default=Channel.SMS.value, help="Delivery channel (default: sms)"
    )
    parser.add_argument("--delay", type=float, help="Seconds between messages")
    parser.add_argument("--dry-run", "-n", action="store_true", help="List recipients without sending")

    args = parser.parse_args()

    try:
        sys.exit(asyncio.run(run_broadcast(args)))
    except KeyboardInterrupt:
        print("\n\nInterrupted! Messages already sent are not rolled back.")
        sys.exit(130)


if __name__ == "__main__":
    main()
