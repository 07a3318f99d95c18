"""
Emergency contact notification.

Fans an emergency alert out to every contact with a staggered delivery.
Each delivery marks the contact `sent`, builds an SMS-style payload and
hands it to the transport; the status reverts to `idle` after a fixed
delay. Deliveries are independent asyncio tasks: one contact never
waits on another, and the dispatcher itself never retries.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence

import httpx

from .models import Alert, Contact, NotificationStatus, Reading, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationPayload:
    """Message delivered to one emergency contact."""

    contact_name: str
    phone: str
    heart_rate: float
    blood_oxygen: float
    sent_at: datetime
    location: str
    alert_kind: str
    alert_message: str
    body: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "contact_name": self.contact_name,
            "phone": self.phone,
            "heart_rate": self.heart_rate,
            "blood_oxygen": self.blood_oxygen,
            "sent_at": self.sent_at.isoformat(),
            "location": self.location,
            "alert_kind": self.alert_kind,
            "alert_message": self.alert_message,
            "body": self.body,
        }


def sender_role(contact: Contact) -> str:
    """Doctors are told about their patient, everyone else about a relative."""
    return "patient" if contact.name.startswith("Dr.") else "relative"


def format_sms(
    contact: Contact,
    heart_rate: float,
    blood_oxygen: float,
    location: str,
    sent_at: datetime,
) -> str:
    """
    Format the SMS body sent to a contact.

    Args:
        contact: Recipient
        heart_rate: Heart rate at send time
        blood_oxygen: Blood oxygen at send time
        location: Location placeholder
        sent_at: Send time

    Returns:
        Multi-line message with vitals rounded to whole numbers
    """
    return (
        f"🚨 Urgent health alert from your {sender_role(contact)}\n"
        f"📍 Location: {location}\n"
        f"❤️ Heart rate: {round(heart_rate)} bpm\n"
        f"🫁 Blood oxygen: {round(blood_oxygen)}%\n"
        f"⏰ Time: {sent_at.strftime('%H:%M:%S')}\n"
        f"🏥 Please check on them immediately"
    )


class NotificationTransport(Protocol):
    """Performs the actual send of a payload."""

    async def send(self, payload: NotificationPayload) -> None: ...


class LoggingTransport:
    """Simulated SMS gateway that logs every message."""

    async def send(self, payload: NotificationPayload) -> None:
        logger.info(f"[SMS] To {payload.contact_name} ({payload.phone}):\n{payload.body}")


class HttpNotificationTransport:
    """
    Posts payloads to a webhook (for example an SMS gateway bridge).

    Failures are logged and dropped after `retries` extra attempts
    (none by default).
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        retries: int = 0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.retries = max(retries, 0)
        self._client = client

    async def _post(self, payload: NotificationPayload) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.url, json=payload.to_dict())
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload.to_dict())

    async def send(self, payload: NotificationPayload) -> bool:
        """
        Post one payload.

        Returns:
            True if the gateway accepted it
        """
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = await self._post(payload)
            except httpx.HTTPError as e:
                logger.error(
                    f"[NOTIFY] Delivery to {payload.contact_name} failed "
                    f"(attempt {attempt}/{attempts}): {e}"
                )
                continue

            if response.is_success:
                logger.info(f"[NOTIFY] Delivered to {payload.contact_name} via {self.url}")
                return True
            logger.warning(
                f"[NOTIFY] Gateway returned {response.status_code} for "
                f"{payload.contact_name} (attempt {attempt}/{attempts}): {response.text}"
            )
        return False


class NotificationDispatcher:
    """
    Staggered, independent notification of emergency contacts.

    Configuration:
        transport: Where payloads go (defaults to LoggingTransport)
        stagger: Delay between consecutive contacts, in seconds
        revert_after: Seconds before a `sent` status returns to `idle`
        location: Location placeholder embedded in every payload
        vitals: Optional provider of the current reading at send time;
            without it the alert's own vitals are used
    """

    def __init__(
        self,
        transport: Optional[NotificationTransport] = None,
        stagger: float = 1.5,
        revert_after: float = 15.0,
        location: str = "Home",
        vitals: Optional[Callable[[], Reading]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.transport = transport or LoggingTransport()
        self.stagger = stagger
        self.revert_after = revert_after
        self.location = location
        self.vitals = vitals
        self.clock = clock

        self._deliveries: set[asyncio.Task] = set()
        self._reverts: Dict[str, asyncio.TimerHandle] = {}
        self._listeners: List[Callable[[Contact], None]] = []
        self.delivered: deque = deque(maxlen=100)

    def add_listener(self, callback: Callable[[Contact], None]) -> None:
        """Register a callback invoked on every contact status change."""
        self._listeners.append(callback)

    def notify(self, contacts: Sequence[Contact], alert: Alert) -> List[asyncio.Task]:
        """
        Schedule delivery to every contact; must be called with a running loop.

        Returns:
            The delivery tasks, one per contact, in contact order
        """
        loop = asyncio.get_running_loop()
        tasks = []
        for index, contact in enumerate(contacts):
            task = loop.create_task(self._deliver(contact, alert, index * self.stagger))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)
            tasks.append(task)
        logger.info(f"[NOTIFY] Scheduled notification of {len(tasks)} contacts")
        return tasks

    async def _deliver(self, contact: Contact, alert: Alert, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)

        sent_at = self.clock()
        if self.vitals is not None:
            reading = self.vitals()
            heart_rate, blood_oxygen = reading.heart_rate, reading.blood_oxygen
        else:
            heart_rate, blood_oxygen = alert.heart_rate, alert.blood_oxygen

        contact.status = NotificationStatus.SENT
        contact.last_notified_at = sent_at
        self._emit(contact)

        payload = NotificationPayload(
            contact_name=contact.name,
            phone=contact.phone,
            heart_rate=heart_rate,
            blood_oxygen=blood_oxygen,
            sent_at=sent_at,
            location=self.location,
            alert_kind=alert.kind.value,
            alert_message=alert.message,
            body=format_sms(contact, heart_rate, blood_oxygen, self.location, sent_at),
        )
        self.delivered.append(payload)

        try:
            await self.transport.send(payload)
        except Exception as e:
            logger.error(f"[NOTIFY] Transport error for {contact.name}: {e}")
        finally:
            # reset() may already have put the contact back to idle
            if contact.status is NotificationStatus.SENT:
                self._schedule_revert(contact)

    def _schedule_revert(self, contact: Contact) -> None:
        previous = self._reverts.pop(contact.display_ref, None)
        if previous is not None:
            previous.cancel()
        loop = asyncio.get_running_loop()
        self._reverts[contact.display_ref] = loop.call_later(
            self.revert_after, self._revert, contact
        )

    def _revert(self, contact: Contact) -> None:
        self._reverts.pop(contact.display_ref, None)
        contact.status = NotificationStatus.IDLE
        logger.debug(f"[NOTIFY] {contact.name} back to idle")
        self._emit(contact)

    def _emit(self, contact: Contact) -> None:
        for callback in self._listeners:
            callback(contact)

    @property
    def pending(self) -> int:
        """Deliveries not yet made."""
        return len(self._deliveries)

    async def wait_delivered(self) -> None:
        """Wait for every scheduled delivery (not the reverts) to finish."""
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    def cancel(self) -> None:
        """Cancel pending deliveries and status reverts."""
        for task in list(self._deliveries):
            task.cancel()
        self._deliveries.clear()
        for handle in self._reverts.values():
            handle.cancel()
        self._reverts.clear()

    def reset(self, contacts: Sequence[Contact]) -> None:
        """Cancel everything in flight and put every contact back to idle."""
        self.cancel()
        for contact in contacts:
            if contact.status is not NotificationStatus.IDLE:
                contact.status = NotificationStatus.IDLE
                self._emit(contact)
