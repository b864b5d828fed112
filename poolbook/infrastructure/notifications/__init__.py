"""Notification publishing (AWS SNS) for booking events."""

from .client import (
    MockNotificationPublisher,
    NotificationConfig,
    NotificationPublisher,
    SNSNotificationPublisher,
    create_notification_publisher,
)

__all__ = [
    "MockNotificationPublisher",
    "NotificationConfig",
    "NotificationPublisher",
    "SNSNotificationPublisher",
    "create_notification_publisher",
]
