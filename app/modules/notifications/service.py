from supabase import Client
from app.modules.notifications.schemas import (
    NotificationResponse, NotificationPreferencesResponse, CreateOutcome, EmailStatus
)
from app.modules.notifications.templates import (
    NotificationType, NotificationPriority, get_template, render_message
)
from app.modules.notifications.realtime import (
    NotificationBroker, NotificationCallback, Subscription
)
from app.modules.notifications.mailer import EmailSender, LoggingEmailSender
from typing import Any, Dict, List, Optional, Tuple, Union
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Sole read/write path to the notifications store.

    Every method fails soft: store errors are logged and turned into
    None, [], 0 or False so callers never see an exception from a backend hiccup.
    """

    def __init__(
        self,
        supabase: Client,
        broker: NotificationBroker,
        email_sender: Optional[EmailSender] = None,
        publish_on_create: bool = True
    ):
        self.supabase = supabase
        self.broker = broker
        self.email_sender = email_sender or LoggingEmailSender()
        self.publish_on_create = publish_on_create

    def deliver(
        self,
        user_id: str,
        notification_type: Union[NotificationType, str],
        data: Optional[Dict[str, Any]] = None,
        title: Optional[str] = None,
        message: Optional[str] = None,
        priority: Optional[Union[NotificationPriority, str]] = None
    ) -> Optional[CreateOutcome]:
        """Create a notification and report what happened to the email step"""
        try:
            notification_type = NotificationType(notification_type)
            template = get_template(notification_type)
            priority = NotificationPriority(priority) if priority else template.priority
        except ValueError as e:
            logger.error(f"Error creating notification: {str(e)}")
            return None

        rendered = render_message(message or template.message, data)
        logger.info(f"Creating notification: user_id={user_id} type={notification_type.value}")

        try:
            result = self.supabase.table("notifications").insert({
                "user_id": user_id,
                "type": notification_type.value,
                "title": title or template.title,
                "message": rendered,
                "priority": priority.value,
                "data": data or {},
                "email_sent": False,
                "is_read": False
            }).execute()

            if not result.data:
                logger.error("Error creating notification: insert returned no row")
                return None
            row = result.data[0]
        except Exception as e:
            logger.error(f"Error creating notification: {str(e)}")
            return None

        email_status = EmailStatus.NOT_REQUIRED
        if template.email:
            email_status = self._send_email(row)

        if self.publish_on_create:
            self.broker.publish(row)

        return CreateOutcome(notification=NotificationResponse(**row), email=email_status)

    def create_notification(
        self,
        user_id: str,
        notification_type: Union[NotificationType, str],
        data: Optional[Dict[str, Any]] = None,
        title: Optional[str] = None,
        message: Optional[str] = None,
        priority: Optional[Union[NotificationPriority, str]] = None
    ) -> Optional[NotificationResponse]:
        """Create a notification; None when the store refused it"""
        outcome = self.deliver(user_id, notification_type, data, title, message, priority)
        return outcome.notification if outcome else None

    def _send_email(self, row: Dict[str, Any]) -> EmailStatus:
        try:
            self.email_sender.send(row)
        except Exception as e:
            logger.error(f"Error sending email notification: {str(e)}")
            return EmailStatus.AMBIGUOUS

        try:
            result = self.supabase.table("notifications")\
                .update({"email_sent": True})\
                .eq("id", row["id"])\
                .execute()
            if result.data:
                row.update(result.data[0])
            else:
                row["email_sent"] = True
            return EmailStatus.CONFIRMED
        except Exception as e:
            # The email still went out; only the flag is missing
            logger.warning(f"Could not update email_sent status: {str(e)}")
            return EmailStatus.AMBIGUOUS

    def lookup_notification(self, notification_id: str) -> Tuple[bool, Optional[NotificationResponse]]:
        """(answered, notification); answered is False when the store could not be queried"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("id", notification_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                return True, None
            return True, NotificationResponse(**result.data)
        except Exception as e:
            logger.error(f"Error fetching notification: {str(e)}")
            return False, None

    def get_notification(self, notification_id: str) -> Optional[NotificationResponse]:
        """Get notification by ID"""
        return self.lookup_notification(notification_id)[1]

    def get_user_notifications(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0
    ) -> List[NotificationResponse]:
        """Newest-first page of a user's notifications"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()

            return [NotificationResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching notifications: {str(e)}")
            return []

    def get_unread_count(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .select("id", count="exact")\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()

            return result.count or 0
        except Exception as e:
            logger.error(f"Error getting unread count: {str(e)}")
            return 0

    def mark_as_read(self, notification_id: str) -> bool:
        try:
            self.supabase.table("notifications")\
                .update({"is_read": True})\
                .eq("id", notification_id)\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error marking notification as read: {str(e)}")
            return False

    def mark_all_as_read(self, user_id: str) -> bool:
        try:
            self.supabase.table("notifications")\
                .update({"is_read": True})\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error marking all notifications as read: {str(e)}")
            return False

    def delete_notification(self, notification_id: str) -> bool:
        """Hard delete; a missing id still counts as success"""
        try:
            self.supabase.table("notifications")\
                .delete()\
                .eq("id", notification_id)\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error deleting notification: {str(e)}")
            return False

    def get_notification_preferences(self, user_id: str) -> Optional[NotificationPreferencesResponse]:
        try:
            result = self.supabase.table("notification_preferences")\
                .select("*")\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                return None
            return NotificationPreferencesResponse(**result.data)
        except Exception as e:
            logger.error(f"Error fetching notification preferences: {str(e)}")
            return None

    def update_notification_preferences(self, user_id: str, preferences: Dict[str, Any]) -> bool:
        """Upsert the given preference fields; fields left out keep their stored value"""
        try:
            self.supabase.table("notification_preferences")\
                .upsert({
                    **preferences,
                    "user_id": user_id,
                    "updated_at": datetime.now(timezone.utc).isoformat()
                }, on_conflict="user_id")\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error updating notification preferences: {str(e)}")
            return False

    def subscribe_to_notifications(self, user_id: str, callback: NotificationCallback) -> Subscription:
        """Push every notification inserted for user_id to callback until unsubscribe()"""
        return self.broker.subscribe(user_id, callback)
