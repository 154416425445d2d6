"""Notification collaborators (emailer and WhatsApp services)."""

from rentauth.core.notify.base import (
    CircuitBreaker,
    DeliveryPolicy,
    DeliveryReceipt,
    HttpNotifier,
    Notifier,
)
from rentauth.core.notify.email import EmailNotifier
from rentauth.core.notify.whatsapp import WhatsAppNotifier


__all__ = [
    "CircuitBreaker",
    "DeliveryPolicy",
    "DeliveryReceipt",
    "EmailNotifier",
    "HttpNotifier",
    "Notifier",
    "WhatsAppNotifier",
]
