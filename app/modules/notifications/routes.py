import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from app.config import settings
from app.modules.notifications.schemas import (
    NotificationCreate, NotificationResponse, UnreadCountResponse, StatusResponse,
    NotificationPreferencesUpdate, NotificationPreferencesResponse, default_preferences
)
from app.modules.notifications.service import NotificationService
from app.modules.notifications.realtime import NotificationBroker, get_notification_broker
from app.core.dependencies import (
    get_current_user_id, get_websocket_user, get_producer_service,
    get_notification_service, check_notification_owner
)
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    limit: int = Query(settings.notifications_page_size, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """List the caller's notifications, newest first"""
    return service.get_user_notifications(user_data["id"], limit=limit, offset=offset)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    return UnreadCountResponse(count=service.get_unread_count(user_data["id"]))


@router.post("", response_model=NotificationResponse, status_code=201)
async def create_notification(
    notification_data: NotificationCreate,
    service: NotificationService = Depends(get_producer_service)
):
    """Create a notification for a recipient (producers only)"""
    notification = service.create_notification(
        notification_data.user_id,
        notification_data.type,
        data=notification_data.data,
        title=notification_data.title,
        message=notification_data.message,
        priority=notification_data.priority
    )
    if notification is None:
        raise HTTPException(status_code=500, detail="Failed to create notification")
    return notification


@router.post("/read-all", response_model=StatusResponse)
async def mark_all_as_read(
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark every unread notification of the caller as read"""
    return StatusResponse(success=service.mark_all_as_read(user_data["id"]))


@router.get("/preferences", response_model=NotificationPreferencesResponse)
async def get_preferences(
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Get the caller's preferences, or the defaults if none were saved yet"""
    preferences = service.get_notification_preferences(user_data["id"])
    return preferences or default_preferences(user_data["id"])


@router.put("/preferences", response_model=StatusResponse)
async def update_preferences(
    preferences: NotificationPreferencesUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    update_data = preferences.model_dump(exclude_none=True, mode="json")
    return StatusResponse(success=service.update_notification_preferences(user_data["id"], update_data))


@router.patch("/{notification_id}/read", response_model=StatusResponse)
async def mark_as_read(
    notification_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark one of the caller's notifications as read"""
    check_notification_owner(notification_id, user_data, service)
    return StatusResponse(success=service.mark_as_read(notification_id))


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Delete one of the caller's notifications; unknown ids are already gone"""
    if check_notification_owner(notification_id, user_data, service, missing_ok=True) is None:
        return None
    if not service.delete_notification(notification_id):
        raise HTTPException(status_code=500, detail="Failed to delete notification")
    return None


@router.websocket("/ws")
async def notifications_ws(
    websocket: WebSocket,
    user_data: Optional[Dict] = Depends(get_websocket_user),
    broker: NotificationBroker = Depends(get_notification_broker)
):
    """Push every notification inserted for the caller until the socket closes"""
    if not user_data:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    subscription = broker.subscribe(
        user_data["id"],
        lambda row: loop.call_soon_threadsafe(queue.put_nowait, row)
    )

    async def forward():
        while True:
            row = await queue.get()
            await websocket.send_json(row)

    async def drain():
        # Returns once the client goes away
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            return

    tasks = [asyncio.create_task(forward()), asyncio.create_task(drain())]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.info(f"Notification websocket for user {user_data['id']} closed: {task.exception()}")
    finally:
        for task in tasks:
            task.cancel()
        subscription.unsubscribe()
