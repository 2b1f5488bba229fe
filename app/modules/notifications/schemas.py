from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

from app.modules.notifications.templates import (
    NOTIFICATION_TEMPLATES, NotificationType, NotificationPriority
)


class NotificationCreate(BaseModel):
    user_id: str
    type: NotificationType
    data: Dict[str, Any] = Field(default_factory=dict)
    title: Optional[str] = None
    message: Optional[str] = None
    priority: Optional[NotificationPriority] = None


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    is_read: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)
    email_sent: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    count: int


class StatusResponse(BaseModel):
    success: bool


class ChannelPreference(BaseModel):
    email: bool = True
    in_app: bool = True


class NotificationPreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    in_app_notifications: Optional[bool] = None
    notification_types: Optional[Dict[NotificationType, ChannelPreference]] = None


class NotificationPreferencesResponse(BaseModel):
    user_id: str
    email_notifications: bool = True
    in_app_notifications: bool = True
    notification_types: Dict[NotificationType, ChannelPreference] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmailStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    CONFIRMED = "confirmed"  # sent and email_sent persisted
    AMBIGUOUS = "ambiguous"  # send attempted, email_sent not persisted


class CreateOutcome(BaseModel):
    notification: NotificationResponse
    email: EmailStatus


def default_preferences(user_id: str) -> NotificationPreferencesResponse:
    """Preferences a user has before saving any: everything on, per-type flags from the templates."""
    return NotificationPreferencesResponse(
        user_id=user_id,
        notification_types={
            notification_type: ChannelPreference(email=template.email, in_app=template.in_app)
            for notification_type, template in NOTIFICATION_TEMPLATES.items()
        },
    )
