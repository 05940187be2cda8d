"""Unit tests for the template engine and registry."""

import pytest

from rental_backoffice.domain.models import Channel, MessageTemplate
from rental_backoffice.domain.templates import (
    TemplateRegistry,
    missing_variables,
    placeholders,
    render,
)
from rental_backoffice.errors import TemplateNotFound


def make_template(body: str, required=()) -> MessageTemplate:
    return MessageTemplate(id="t1", name="Test", channel=Channel.SMS, body=body, required_variables=tuple(required))


class TestRender:

    def test_unresolved_placeholder_passes_through(self):
        assert render(make_template("Hi {customerName}", ["customerName"]), {}) == "Hi {customerName}"

    def test_substitutes_every_occurrence(self):
        template = make_template("{car} booked. Return {car} by 6 PM.", ["car"])
        assert render(template, {"car": "Swift"}) == "Swift booked. Return Swift by 6 PM."

    def test_insertion_order_does_not_matter(self):
        template = make_template("{a}-{b}-{c}", ["a", "b", "c"])
        first = render(template, {"a": "1", "b": "2", "c": "3"})
        second = render(template, {"c": "3", "a": "1", "b": "2"})
        assert first == second == "1-2-3"

    def test_substituted_values_are_not_rescanned(self):
        template = make_template("{a}{b}", ["a", "b"])
        assert render(template, {"a": "{b}", "b": "B"}) == "{b}B"

    def test_partial_variables(self):
        template = make_template("Hi {customerName}, call {phone}", ["customerName", "phone"])
        assert render(template, {"customerName": "Rajesh"}) == "Hi Rajesh, call {phone}"

    def test_default_booking_confirmation(self):
        template = TemplateRegistry().get("booking_confirmation")
        text = render(template, {
            "customerName": "Rajesh Kumar",
            "bookingId": "VATS-BK-001",
            "carDetails": "Maruti Swift",
            "startDate": "2025-01-10",
            "endDate": "2025-01-12",
            "advance": "2000",
            "phone": "+91 9000000000",
        })
        assert "{" not in text
        assert "Advance: ₹2000" in text


class TestMissingVariables:

    def test_lists_required_names_not_provided(self):
        template = make_template("{a} {b}", ["a", "b"])
        assert missing_variables(template, {"a": "1"}) == ["b"]

    def test_falls_back_to_body_placeholders(self):
        template = make_template("{x} and {y} and {x}")
        assert missing_variables(template, {}) == ["x", "y"]

    def test_placeholders_unique_in_order(self):
        assert placeholders("{b} {a} {b}") == ["b", "a"]


class TestTemplateRegistry:

    def test_default_templates(self):
        ids = {t.id for t in TemplateRegistry().list()}
        assert ids == {"booking_confirmation", "return_reminder", "overdue_notice", "payment_reminder"}

    def test_default_required_variables_match_body(self):
        for template in TemplateRegistry().list():
            assert set(placeholders(template.body)) == set(template.required_variables)

    def test_get_unknown_raises(self):
        with pytest.raises(TemplateNotFound) as exc_info:
            TemplateRegistry().get("nope")
        assert exc_info.value.template_id == "nope"

    def test_add_derives_required_variables(self):
        registry = TemplateRegistry(templates=[])
        template = registry.add("Welcome", "whatsapp", "Welcome {customerName} to {branch}")
        assert template.channel == Channel.WHATSAPP
        assert template.required_variables == ("customerName", "branch")
        assert registry.get(template.id) is template

    def test_add_with_explicit_variables(self):
        registry = TemplateRegistry(templates=[])
        template = registry.add("Note", Channel.EMAIL, "Dear {name}", ["name", "extra"])
        assert template.required_variables == ("name", "extra")
        assert len(registry.list()) == 1

    def test_declared_names_with_punctuation_are_rendered(self):
        registry = TemplateRegistry(templates=[])
        template = registry.add("Note", Channel.SMS, "Hi {first-name}, car {car.model}", ["first-name", "car.model"])
        variables = {"first-name": "Raj", "car.model": "Swift"}

        assert missing_variables(template, variables) == []
        assert render(template, variables) == "Hi Raj, car Swift"

    def test_undeclared_word_tokens_still_rendered(self):
        template = make_template("{first-name} from {city}", ["first-name"])
        assert render(template, {"first-name": "Raj", "city": "Thane"}) == "Raj from Thane"
