"""
Notification publishing for booking events.

Delivery of SMS and push messages belongs to external providers. This
module only hands cancellation and confirmation events to AWS SNS (or
keeps them in memory in mock mode). A failed publish is logged and never
undoes the booking operation that produced the event.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from poolbook.core.scheduling.models import BookingConfirmedEvent, CancellationEvent

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 7


class NotificationError(Exception):
    """Raised when a notification cannot be handed to the provider."""
    pass


@dataclass
class NotificationConfig:
    region: str = "us-east-1"
    topic_arn: Optional[str] = None
    sms_enabled: bool = True


@dataclass
class SentNotification:
    """What was published, kept by the mock publisher."""
    kind: str
    recipient: Optional[str]
    message: str


class NotificationPublisher(Protocol):
    """
    Protocol for event publishing.

    Routes depend on this, so tests and local development can swap in
    the in-memory publisher.
    """

    def publish_cancellation(self, event: CancellationEvent) -> bool:
        ...

    def publish_confirmation(self, event: BookingConfirmedEvent) -> bool:
        ...


def _valid_phone(phone: Optional[str]) -> bool:
    if not phone or len(phone) < MIN_PHONE_LENGTH:
        logger.warning("Skipping notification, invalid phone number", extra={"phone": phone})
        return False
    return True


class SNSNotificationPublisher:
    """
    AWS SNS publisher.

    Sends SMS straight to the member's phone when SMS is enabled, and
    also publishes to a topic when one is configured so other consumers
    (email, push) can subscribe.
    """

    def __init__(self, config: NotificationConfig) -> None:
        try:
            import boto3
        except ImportError:
            raise ImportError(
                "boto3 is required for SNS notifications. Install with: pip install boto3"
            )

        self._config = config
        self._sns_client = boto3.client('sns', region_name=config.region)

        logger.info(
            "Initialized SNS notification publisher",
            extra={"region": config.region, "topic_arn": config.topic_arn}
        )

    def publish_cancellation(self, event: CancellationEvent) -> bool:
        return self._publish(
            kind="reservation.cancelled",
            phone=event.owner_contact,
            message=event.summary,
            booking_code=event.reservation.booking_code,
        )

    def publish_confirmation(self, event: BookingConfirmedEvent) -> bool:
        return self._publish(
            kind="booking.confirmed",
            phone=event.contact,
            message=event.summary,
            booking_code=event.booking_code,
        )

    def _publish(self, kind: str, phone: Optional[str], message: str, booking_code: str) -> bool:
        sent = False
        try:
            if self._config.topic_arn:
                self._sns_client.publish(
                    TopicArn=self._config.topic_arn,
                    Message=message,
                    MessageAttributes={
                        'event': {'DataType': 'String', 'StringValue': kind},
                        'booking_code': {'DataType': 'String', 'StringValue': booking_code or '-'},
                    },
                )
                sent = True

            if self._config.sms_enabled and _valid_phone(phone):
                self._sns_client.publish(PhoneNumber=phone, Message=message)
                sent = True

        except Exception as e:
            logger.error(
                "Failed to publish notification",
                extra={"kind": kind, "booking_code": booking_code, "error": str(e)}
            )
            return False

        logger.info(
            "Notification published",
            extra={"kind": kind, "booking_code": booking_code, "sent": sent}
        )
        return sent


class MockNotificationPublisher:
    """
    In-memory publisher for local development and tests.

    Keeps every published message in ``sent`` instead of calling AWS.
    """

    def __init__(self) -> None:
        self.sent: list[SentNotification] = []
        logger.info("Initialized mock notification publisher (in-memory)")

    def publish_cancellation(self, event: CancellationEvent) -> bool:
        return self._record("reservation.cancelled", event.owner_contact, event.summary)

    def publish_confirmation(self, event: BookingConfirmedEvent) -> bool:
        return self._record("booking.confirmed", event.contact, event.summary)

    def _record(self, kind: str, phone: Optional[str], message: str) -> bool:
        if not _valid_phone(phone):
            return False
        self.sent.append(SentNotification(kind=kind, recipient=phone, message=message))
        logger.debug("Mock notification recorded", extra={"kind": kind, "recipient": phone})
        return True


def create_notification_publisher(
    config: Optional[NotificationConfig] = None,
    mock_mode: bool = False,
) -> NotificationPublisher:
    """Return the SNS publisher, or the in-memory one in mock mode."""
    if mock_mode:
        return MockNotificationPublisher()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return SNSNotificationPublisher(config)
