"""
Core dependencies for route protection and notification ownership checks
"""

from fastapi import Depends, HTTPException, Query, Security, WebSocket, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.notifications.realtime import NotificationBroker, get_notification_broker
from app.modules.notifications.schemas import NotificationResponse
from app.modules.notifications.service import NotificationService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_websocket_user(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Resolve the ?token= query parameter of a websocket; None when missing or invalid"""
    if not token:
        return None
    try:
        return auth_service.get_current_user(token)
    except HTTPException:
        logger.info(f"Rejected websocket connection from {websocket.client}")
        return None


def is_super_user(user_data: dict) -> bool:
    """Check if user is a super user from app_metadata"""
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def require_super_user(user_data: dict = Depends(get_current_user_id)) -> dict:
    """Only server-side producers may create notifications for other users"""
    if not is_super_user(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only notification producers can create notifications"
        )
    return user_data


def get_notification_service(
    supabase: Client = Depends(get_supabase),
    broker: NotificationBroker = Depends(get_notification_broker)
) -> NotificationService:
    return NotificationService(
        supabase,
        broker,
        publish_on_create=settings.publishes_locally
    )


def get_producer_service(
    user_data: dict = Depends(require_super_user),
    supabase: Client = Depends(get_service_supabase),
    broker: NotificationBroker = Depends(get_notification_broker)
) -> NotificationService:
    """Service on the service-role client; producers write rows owned by other users"""
    return NotificationService(
        supabase,
        broker,
        publish_on_create=settings.publishes_locally
    )


def check_notification_owner(
    notification_id: str,
    user_data: dict,
    service: NotificationService,
    missing_ok: bool = False
) -> Optional[NotificationResponse]:
    """Return the notification if it belongs to the user; 404 if missing (None with missing_ok), 403 if someone else's"""
    answered, notification = service.lookup_notification(notification_id)
    if not answered:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notifications are temporarily unavailable"
        )
    if notification is None:
        if missing_ok:
            return None
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    if notification.user_id != user_data["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own notifications"
        )
    return notification
