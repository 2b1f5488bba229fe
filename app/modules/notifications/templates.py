"""
Notification types, priorities and the static template table.

Every NotificationType has exactly one template; titles and messages are the
copy shown to buyers and vendors. Messages may carry ``{placeholder}`` tokens
that are filled from the notification's data payload at creation time.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class NotificationType(str, Enum):
    NEW_QUOTE_RECEIVED = "new_quote_received"  # Buyer: new quote on their RFQ
    RFQ_DEADLINE_APPROACHING = "rfq_deadline_approaching"  # Buyer: RFQ deadline soon
    RFQ_EXPIRED = "rfq_expired"  # Buyer: RFQ deadline passed
    NEW_RFQ_AVAILABLE = "new_rfq_available"  # Vendor: new RFQ in their category
    QUOTE_STATUS_CHANGED = "quote_status_changed"  # Vendor: quote accepted/rejected
    RFQ_AWARDED = "rfq_awarded"  # Vendor: won the RFQ
    QUOTE_DEADLINE_REMINDER = "quote_deadline_reminder"  # Vendor: quote expiring soon
    NEW_MESSAGE = "new_message"
    SYSTEM_ALERT = "system_alert"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass(frozen=True)
class NotificationTemplate:
    title: str
    message: str
    priority: NotificationPriority
    email: bool
    in_app: bool


NOTIFICATION_TEMPLATES: Dict[NotificationType, NotificationTemplate] = {
    NotificationType.NEW_QUOTE_RECEIVED: NotificationTemplate(
        title="New Quote Received",
        message="You have received a new quote for your RFQ: {rfq_title}",
        priority=NotificationPriority.HIGH,
        email=True,
        in_app=True,
    ),
    NotificationType.RFQ_DEADLINE_APPROACHING: NotificationTemplate(
        title="RFQ Deadline Approaching",
        message='Your RFQ "{rfq_title}" deadline is approaching in {hours} hours',
        priority=NotificationPriority.MEDIUM,
        email=True,
        in_app=False,
    ),
    NotificationType.RFQ_EXPIRED: NotificationTemplate(
        title="RFQ Expired",
        message='Your RFQ "{rfq_title}" has expired',
        priority=NotificationPriority.MEDIUM,
        email=True,
        in_app=False,
    ),
    NotificationType.NEW_RFQ_AVAILABLE: NotificationTemplate(
        title="New RFQ Available",
        message='A new RFQ "{rfq_title}" is available in your category',
        priority=NotificationPriority.HIGH,
        email=True,
        in_app=True,
    ),
    NotificationType.QUOTE_STATUS_CHANGED: NotificationTemplate(
        title="Quote Status Updated",
        message='Your quote for "{rfq_title}" has been {status}',
        priority=NotificationPriority.HIGH,
        email=True,
        in_app=True,
    ),
    NotificationType.RFQ_AWARDED: NotificationTemplate(
        title="Quote Accepted",
        message='Your quote for "{rfq_title}" has been accepted!',
        priority=NotificationPriority.URGENT,
        email=True,
        in_app=True,
    ),
    NotificationType.QUOTE_DEADLINE_REMINDER: NotificationTemplate(
        title="Quote Expiring Soon",
        message='Your quote for "{rfq_title}" expires in {hours} hours',
        priority=NotificationPriority.MEDIUM,
        email=True,
        in_app=False,
    ),
    NotificationType.NEW_MESSAGE: NotificationTemplate(
        title="New Message",
        message="You have a new message from {sender_name}",
        priority=NotificationPriority.MEDIUM,
        email=False,
        in_app=True,
    ),
    NotificationType.SYSTEM_ALERT: NotificationTemplate(
        title="System Alert",
        message="{message}",
        priority=NotificationPriority.LOW,
        email=True,
        in_app=True,
    ),
}

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")

# Toast display time in milliseconds
_TOAST_DURATIONS_MS = {
    NotificationPriority.URGENT: 8000,
    NotificationPriority.HIGH: 4000,
    NotificationPriority.MEDIUM: 4000,
    NotificationPriority.LOW: 2000,
}


def get_template(notification_type: NotificationType) -> NotificationTemplate:
    return NOTIFICATION_TEMPLATES[NotificationType(notification_type)]


def render_message(message: str, data: Optional[Mapping[str, Any]]) -> str:
    """Fill {key} placeholders from data; unknown or None-valued keys stay verbatim."""
    if not data:
        return message

    def _replace(match: "re.Match[str]") -> str:
        value = data.get(match.group(1))
        if value is None:
            return match.group(0)
        return str(value)

    return _PLACEHOLDER.sub(_replace, message)


def toast_duration_ms(priority: NotificationPriority) -> int:
    return _TOAST_DURATIONS_MS[NotificationPriority(priority)]
