import logging
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send(self, notification: Dict[str, Any]) -> None:
        ...


class LoggingEmailSender:
    """Records the email that would go out. No mail provider is wired in."""

    def send(self, notification: Dict[str, Any]) -> None:
        logger.info(
            f"Email notification to be sent: user_id={notification.get('user_id')} "
            f"type={notification.get('type')} title={notification.get('title')!r} "
            f"message={notification.get('message')!r}"
        )
