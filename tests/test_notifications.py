"""
Unit tests for emergency contact notification.

These tests verify:
1. Deliveries are staggered and independent
2. Contact statuses go to sent and revert to idle
3. The SMS payload carries the vitals at send time
4. Transport failures never affect other contacts
5. The HTTP transport posts JSON and swallows gateway errors

Usage:
    pytest tests/test_notifications.py -v
"""
import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from conftest import FakeClock, RecordingTransport
from vitals_monitor.config import default_contacts
from vitals_monitor.models import Alert, AlertKind, Contact, NotificationStatus, Reading
from vitals_monitor.notifications import (
    HttpNotificationTransport,
    NotificationDispatcher,
    NotificationPayload,
    format_sms,
    sender_role,
)


@pytest.fixture
def alert():
    return Alert(
        kind=AlertKind.EMERGENCY,
        message="Critical",
        occurred_at=datetime(2025, 1, 15, 8, 30, tzinfo=timezone.utc),
        heart_rate=40.0,
        blood_oxygen=85.0,
    )


@pytest.fixture
def contacts():
    return default_contacts()


def _payload(**overrides):
    fields = dict(
        contact_name="Family member",
        phone="+966-555-0456",
        heart_rate=40.0,
        blood_oxygen=85.0,
        sent_at=datetime(2025, 1, 15, 8, 30, tzinfo=timezone.utc),
        location="Home",
        alert_kind="emergency",
        alert_message="Critical",
        body="...",
    )
    fields.update(overrides)
    return NotificationPayload(**fields)


class TestMessageFormat:
    """SMS text."""

    def test_sender_role(self):
        assert sender_role(Contact("Dr. Ahmed Mohammed", "1", "contact1")) == "patient"
        assert sender_role(Contact("Family member", "2", "contact2")) == "relative"

    def test_sms_body(self):
        body = format_sms(
            Contact("Family member", "+966-555-0456", "contact2"),
            heart_rate=41.6,
            blood_oxygen=85.2,
            location="Home",
            sent_at=datetime(2025, 1, 15, 8, 30, 5, tzinfo=timezone.utc),
        )

        assert "from your relative" in body
        assert "Location: Home" in body
        assert "Heart rate: 42 bpm" in body
        assert "Blood oxygen: 85%" in body
        assert "Time: 08:30:05" in body

    def test_default_contacts_are_fresh(self):
        first, second = default_contacts(), default_contacts()
        first[0].status = NotificationStatus.SENT

        assert second[0].status is NotificationStatus.IDLE
        assert [c.display_ref for c in first] == ["contact1", "contact2"]


class TestNotificationDispatcher:
    """Staggered delivery and status lifecycle."""

    @pytest.mark.asyncio
    async def test_staggered_delivery(self, alert, contacts):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(transport=transport, stagger=0.1, revert_after=5.0)

        tasks = dispatcher.notify(contacts, alert)
        assert len(tasks) == 2
        await asyncio.sleep(0.02)

        assert contacts[0].status is NotificationStatus.SENT
        assert contacts[1].status is NotificationStatus.IDLE
        assert dispatcher.pending == 1

        await dispatcher.wait_delivered()

        assert contacts[1].status is NotificationStatus.SENT
        assert [p.contact_name for p in transport.sent] == ["Dr. Ahmed Mohammed", "Family member"]
        dispatcher.cancel()

    @pytest.mark.asyncio
    async def test_status_reverts_to_idle(self, alert, contacts):
        dispatcher = NotificationDispatcher(transport=RecordingTransport(), stagger=0, revert_after=0.05)

        dispatcher.notify(contacts, alert)
        await dispatcher.wait_delivered()
        assert all(c.status is NotificationStatus.SENT for c in contacts)

        await asyncio.sleep(0.1)
        assert all(c.status is NotificationStatus.IDLE for c in contacts)

    @pytest.mark.asyncio
    async def test_renotify_restarts_revert_timer(self, alert, contacts):
        dispatcher = NotificationDispatcher(transport=RecordingTransport(), stagger=0, revert_after=0.1)

        dispatcher.notify(contacts[:1], alert)
        await dispatcher.wait_delivered()
        await asyncio.sleep(0.06)
        dispatcher.notify(contacts[:1], alert)
        await dispatcher.wait_delivered()
        await asyncio.sleep(0.06)

        assert contacts[0].status is NotificationStatus.SENT
        dispatcher.cancel()

    @pytest.mark.asyncio
    async def test_payload_uses_vitals_at_send_time(self, alert, contacts):
        clock = FakeClock()
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(
            transport=transport,
            stagger=0,
            location="Clinic",
            vitals=lambda: Reading(62.4, 96.6),
            clock=clock,
        )

        dispatcher.notify(contacts, alert)
        await dispatcher.wait_delivered()

        payload = transport.sent[0]
        assert payload.heart_rate == 62.4
        assert payload.blood_oxygen == 96.6
        assert payload.location == "Clinic"
        assert payload.sent_at == clock.now
        assert payload.alert_kind == "emergency"
        assert "from your patient" in payload.body
        assert contacts[0].last_notified_at == clock.now
        dispatcher.cancel()

    @pytest.mark.asyncio
    async def test_payload_falls_back_to_alert_vitals(self, alert, contacts):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(transport=transport, stagger=0)

        dispatcher.notify(contacts[:1], alert)
        await dispatcher.wait_delivered()

        assert transport.sent[0].heart_rate == 40.0
        assert len(dispatcher.delivered) == 1
        dispatcher.cancel()

    @pytest.mark.asyncio
    async def test_failure_does_not_block_other_contacts(self, alert, contacts):
        transport = RecordingTransport(fail_for={"Dr. Ahmed Mohammed"})
        dispatcher = NotificationDispatcher(transport=transport, stagger=0)

        dispatcher.notify(contacts, alert)
        await dispatcher.wait_delivered()

        assert [p.contact_name for p in transport.sent] == ["Family member"]
        assert all(c.status is NotificationStatus.SENT for c in contacts)
        dispatcher.cancel()

    @pytest.mark.asyncio
    async def test_listener_sees_every_status_change(self, alert, contacts):
        changes = []
        dispatcher = NotificationDispatcher(transport=RecordingTransport(), stagger=0, revert_after=0.02)
        dispatcher.add_listener(lambda c: changes.append((c.display_ref, c.status)))

        dispatcher.notify(contacts[:1], alert)
        await dispatcher.wait_delivered()
        await asyncio.sleep(0.05)

        assert changes == [
            ("contact1", NotificationStatus.SENT),
            ("contact1", NotificationStatus.IDLE),
        ]

    @pytest.mark.asyncio
    async def test_reset_cancels_pending_and_idles(self, alert, contacts):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(transport=transport, stagger=0.2)

        dispatcher.notify(contacts, alert)
        await asyncio.sleep(0.02)
        dispatcher.reset(contacts)
        await asyncio.sleep(0.25)

        assert dispatcher.pending == 0
        assert len(transport.sent) == 1
        assert all(c.status is NotificationStatus.IDLE for c in contacts)

    @pytest.mark.asyncio
    async def test_cancelled_send_still_reverts(self, alert, contacts):
        class StalledTransport:
            async def send(self, payload):
                await asyncio.sleep(10)

        dispatcher = NotificationDispatcher(transport=StalledTransport(), stagger=0, revert_after=0.05)

        tasks = dispatcher.notify(contacts[:1], alert)
        await asyncio.sleep(0.02)
        assert contacts[0].status is NotificationStatus.SENT

        tasks[0].cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await asyncio.sleep(0.1)

        assert contacts[0].status is NotificationStatus.IDLE

    def test_notify_requires_running_loop(self, alert, contacts):
        dispatcher = NotificationDispatcher()
        with pytest.raises(RuntimeError):
            dispatcher.notify(contacts, alert)


class TestHttpNotificationTransport:
    """Webhook delivery through httpx."""

    @pytest.mark.asyncio
    async def test_posts_payload_as_json(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(202, json={"queued": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpNotificationTransport("http://gateway.test/sms", client=client)
            delivered = await transport.send(_payload())

        assert delivered is True
        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert str(requests[0].url) == "http://gateway.test/sms"
        body = json.loads(requests[0].content)
        assert body["contact_name"] == "Family member"
        assert body["sent_at"] == "2025-01-15T08:30:00+00:00"

    @pytest.mark.asyncio
    async def test_gateway_error_is_logged_not_raised(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, text="down")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpNotificationTransport("http://gateway.test/sms", client=client)
            assert await transport.send(_payload()) is False

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_logged_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpNotificationTransport("http://gateway.test/sms", client=client)
            assert await transport.send(_payload()) is False

    @pytest.mark.asyncio
    async def test_retries_until_accepted(self):
        responses = [httpx.Response(503), httpx.Response(200)]

        def handler(request):
            return responses.pop(0)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpNotificationTransport(
                "http://gateway.test/sms", retries=2, client=client
            )
            assert await transport.send(_payload()) is True

        assert responses == []
