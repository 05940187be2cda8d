"""Unit tests for ChannelDispatcher and the simulated providers."""

import pytest

from rental_backoffice.application import ChannelDispatcher
from rental_backoffice.domain.models import Channel, DispatchStatus
from rental_backoffice.domain.templates import TemplateRegistry
from rental_backoffice.errors import ProviderDeliveryFailed, TemplateNotFound
from rental_backoffice.infrastructure.messaging import (
    SimulatedEmailProvider,
    SimulatedSmsProvider,
    default_providers,
)


@pytest.fixture
def dispatcher(providers, messaging_settings):
    return ChannelDispatcher(providers=providers, templates=TemplateRegistry(), settings=messaging_settings)


class TestSend:

    async def test_successful_sms(self, dispatcher, providers):
        record = await dispatcher.send(Channel.SMS, "+91 9876543210", "Hello")

        assert record.status == DispatchStatus.SENT
        assert record.cost == 0.50
        assert record.recipient_id == "unknown"
        assert record.recipient_name == "Unknown"
        assert providers[Channel.SMS].delivered == [("+91 9876543210", "Hello")]

    async def test_channel_costs(self, dispatcher):
        sms = await dispatcher.send(Channel.SMS, "1", "x")
        whatsapp = await dispatcher.send(Channel.WHATSAPP, "1", "x")
        email = await dispatcher.send(Channel.EMAIL, "a@b.in", "x")
        assert sms.cost > whatsapp.cost > email.cost

    async def test_false_outcome_is_failed_record(self, dispatcher, providers):
        providers[Channel.SMS].fail_for = {"+91 1"}
        record = await dispatcher.send(Channel.SMS, "+91 1", "Hello", "C1", "Rajesh")

        assert record.status == DispatchStatus.FAILED
        assert record.cost is None
        assert record.recipient_name == "Rajesh"
        assert dispatcher.get_logs() == [record]

    @pytest.mark.parametrize("error", [ProviderDeliveryFailed("gateway 500"), RuntimeError("boom")])
    async def test_provider_exception_does_not_escape(self, dispatcher, providers, error):
        providers[Channel.WHATSAPP].raise_for = {"+91 2": error}
        record = await dispatcher.send(Channel.WHATSAPP, "+91 2", "Hello")
        assert record.status == DispatchStatus.FAILED

    async def test_missing_provider_is_failed_record(self, messaging_settings):
        dispatcher = ChannelDispatcher(providers={}, settings=messaging_settings)
        record = await dispatcher.send(Channel.SMS, "+91 1", "Hello")
        assert record.status == DispatchStatus.FAILED

    async def test_channel_given_as_string(self, dispatcher):
        record = await dispatcher.send("whatsapp", "+91 1", "Hello")
        assert record.channel == Channel.WHATSAPP

    async def test_send_email_prefixes_subject(self, dispatcher, providers):
        ok = await dispatcher.send_email("rajesh@example.com", "Invoice", "Attached.")
        assert ok is True
        assert providers[Channel.EMAIL].delivered == [("rajesh@example.com", "Invoice: Attached.")]

    async def test_convenience_wrappers_return_bool(self, dispatcher, providers):
        providers[Channel.SMS].fail_for = {"bad"}
        assert await dispatcher.send_sms("good", "x") is True
        assert await dispatcher.send_sms("bad", "x") is False
        assert await dispatcher.send_whatsapp("good", "x", "C1", "Priya") is True


class TestSendTemplated:

    async def test_routes_to_template_channel(self, dispatcher, providers):
        ok = await dispatcher.send_templated(
            "return_reminder",
            "+91 9876543210",
            {"customerName": "Rajesh", "carDetails": "Swift", "returnDate": "2025-02-01", "phone": "+91 9000000000"},
            "C1",
            "Rajesh",
        )
        assert ok is True
        assert providers[Channel.SMS].delivered == []
        destination, content = providers[Channel.WHATSAPP].delivered[0]
        assert destination == "+91 9876543210"
        assert "Hi Rajesh" in content
        assert "(2025-02-01)" in content

    async def test_unknown_template_raises(self, dispatcher):
        with pytest.raises(TemplateNotFound):
            await dispatcher.send_templated("nope", "+91 1", {})

    async def test_email_template_is_not_routable(self, dispatcher, providers):
        template = dispatcher.templates.add("Receipt", Channel.EMAIL, "Thanks {customerName}")
        ok = await dispatcher.send_templated(template.id, "rajesh@example.com", {"customerName": "Rajesh"})

        assert ok is False
        assert providers[Channel.EMAIL].delivered == []
        assert dispatcher.get_logs() == []

    async def test_missing_variables_are_left_in_message(self, dispatcher, providers):
        await dispatcher.send_templated("overdue_notice", "+91 1", {"customerName": "Rajesh"})
        _, content = providers[Channel.SMS].delivered[0]
        assert content.startswith("URGENT: Rajesh, your rental {carDetails}")


class TestLogs:

    async def test_filter_by_customer(self, dispatcher):
        await dispatcher.send(Channel.SMS, "1", "a", "C1", "Rajesh")
        await dispatcher.send(Channel.SMS, "2", "b", "C2", "Priya")
        await dispatcher.send(Channel.SMS, "1", "c", "C1", "Rajesh")

        assert [log.rendered_message for log in dispatcher.get_logs("C1")] == ["a", "c"]

    async def test_all_logs_newest_first(self, dispatcher):
        for text in ("a", "b", "c"):
            await dispatcher.send(Channel.SMS, "1", text)
        assert [log.rendered_message for log in dispatcher.get_logs()] == ["c", "b", "a"]
        # Reading the log does not reorder it
        assert [log.rendered_message for log in dispatcher.get_logs()] == ["c", "b", "a"]

    async def test_returned_list_is_a_copy(self, dispatcher):
        await dispatcher.send(Channel.SMS, "1", "a")
        dispatcher.get_logs().clear()
        assert len(dispatcher.get_logs()) == 1

    async def test_stats(self, dispatcher, providers):
        providers[Channel.SMS].fail_for = {"bad"}
        await dispatcher.send(Channel.SMS, "good", "a")
        await dispatcher.send(Channel.WHATSAPP, "good", "b")
        await dispatcher.send(Channel.SMS, "bad", "c")

        stats = dispatcher.get_stats()
        assert stats["total_sent"] == 2
        assert stats["total_failed"] == 1
        assert stats["total_cost"] == 0.75
        assert stats["by_channel"]["sms"] == {"count": 2, "cost": 0.5}
        assert stats["by_channel"]["whatsapp"]["count"] == 1
        assert stats["recent_activity"][0].rendered_message == "c"

    async def test_record_serialization(self, dispatcher):
        record = await dispatcher.send(Channel.SMS, "1", "hello", "C9", "Asha")
        data = record.to_dict()
        assert data["customerId"] == "C9"
        assert data["type"] == "sms"
        assert data["status"] == "sent"


class TestSimulatedProviders:

    async def test_sms_provider_delivers(self):
        assert await SimulatedSmsProvider(latency_seconds=0).deliver("+91 1", "hi") is True

    async def test_empty_destination_fails(self):
        with pytest.raises(ProviderDeliveryFailed):
            await SimulatedSmsProvider().deliver("  ", "hi")

    async def test_email_requires_address(self):
        with pytest.raises(ProviderDeliveryFailed):
            await SimulatedEmailProvider().deliver("+91 1", "hi")

    def test_default_providers_cover_every_channel(self, messaging_settings):
        providers = default_providers(messaging_settings)
        assert set(providers) == set(Channel)
        assert all(p.channel == channel for channel, p in providers.items())
