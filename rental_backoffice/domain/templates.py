"""
Template Engine - Placeholder Substitution for Customer Messages
=================================================================

Templates use {name} tokens. Rendering replaces every token whose name is
in the variable map; unknown tokens are left untouched so callers can spot
them (see missing_variables).
"""

import logging
import re
import uuid
from typing import Dict, Iterable, List, Mapping, Optional

from ..errors import TemplateNotFound
from .models import Channel, MessageTemplate

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{(\w+)\}")


def placeholders(body: str) -> List[str]:
    """Unique placeholder names in order of first appearance."""
    seen: List[str] = []
    for name in PLACEHOLDER.findall(body):
        if name not in seen:
            seen.append(name)
    return seen


def _token_pattern(template: MessageTemplate) -> "re.Pattern":
    # Declared names may contain any character ("first-name", "car.model")
    if not template.required_variables:
        return PLACEHOLDER
    tokens = [re.escape("{" + name + "}") for name in template.required_variables]
    return re.compile("|".join(tokens + [PLACEHOLDER.pattern]))


def render(template: MessageTemplate, variables: Mapping[str, str]) -> str:
    """
    Substitute placeholders in a single pass.

    Every declared required variable is matched literally; other {word}
    tokens in the body are matched too. Substituted values are not
    re-scanned, so the output does not depend on the order of the
    variable map.
    """
    def _replace(match: "re.Match") -> str:
        name = match.group(0)[1:-1]
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _token_pattern(template).sub(_replace, template.body)


def missing_variables(template: MessageTemplate, variables: Mapping[str, str]) -> List[str]:
    """Required names that the variable map does not provide."""
    names = list(template.required_variables) or placeholders(template.body)
    return [name for name in names if name not in variables]


DEFAULT_TEMPLATES = [
    MessageTemplate(
        id="booking_confirmation",
        name="Booking Confirmation",
        channel=Channel.SMS,
        body=(
            "Hi {customerName}, your booking {bookingId} for {carDetails} from {startDate} "
            "to {endDate} is confirmed. Advance: ₹{advance}. Contact: {phone}"
        ),
        required_variables=("customerName", "bookingId", "carDetails", "startDate", "endDate", "advance", "phone"),
    ),
    MessageTemplate(
        id="return_reminder",
        name="Return Reminder",
        channel=Channel.WHATSAPP,
        body=(
            "🚗 *Return Reminder* 🚗\n\nHi {customerName},\n\n"
            "Your rental {carDetails} is due for return tomorrow ({returnDate}).\n\n"
            "Return Location: Vats Rental, Thane\nTime: Before 6 PM\n\n"
            "For any queries: {phone}"
        ),
        required_variables=("customerName", "carDetails", "returnDate", "phone"),
    ),
    MessageTemplate(
        id="overdue_notice",
        name="Overdue Notice",
        channel=Channel.SMS,
        body=(
            "URGENT: {customerName}, your rental {carDetails} is {daysOverdue} days overdue. "
            "Please return immediately or contact {phone}. Late charges apply."
        ),
        required_variables=("customerName", "carDetails", "daysOverdue", "phone"),
    ),
    MessageTemplate(
        id="payment_reminder",
        name="Payment Reminder",
        channel=Channel.WHATSAPP,
        body=(
            "💰 *Payment Reminder* 💰\n\nHi {customerName},\n\n"
            "Pending payment for booking {bookingId}:\nAmount: ₹{amount}\nDue Date: {dueDate}\n\n"
            "Pay now to avoid late charges.\n\nUPI: vatsrental@paytm\nContact: {phone}"
        ),
        required_variables=("customerName", "bookingId", "amount", "dueDate", "phone"),
    ),
]


class TemplateRegistry:
    """
    In-process store of message templates.

    Usage:
        registry = TemplateRegistry()
        template = registry.get("return_reminder")
        text = render(template, {"customerName": "Rajesh"})
    """

    def __init__(self, templates: Optional[Iterable[MessageTemplate]] = None):
        source = DEFAULT_TEMPLATES if templates is None else templates
        self._templates: Dict[str, MessageTemplate] = {t.id: t for t in source}

    def get(self, template_id: str) -> MessageTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFound(template_id) from None

    def list(self) -> List[MessageTemplate]:
        return list(self._templates.values())

    def add(
        self,
        name: str,
        channel: Channel,
        body: str,
        required_variables: Optional[Iterable[str]] = None,
    ) -> MessageTemplate:
        """Register a new template; required variables default to the body's placeholders."""
        names = tuple(required_variables) if required_variables is not None else tuple(placeholders(body))
        template = MessageTemplate(
            id=uuid.uuid4().hex,
            name=name,
            channel=Channel(channel),
            body=body,
            required_variables=names,
        )
        self._templates[template.id] = template
        logger.info(f"Added template '{name}' ({template.channel.value})")
        return template
