from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from models.notification import NotificationIdsRequest, DevNotificationRequest, ProcessNotificationsRequest
from models.user import UserModel
from repositories.notifications import NotificationRepository
from automations.scheduler import NotificationScheduler
from routes.deps import get_current_user, get_notification_repository, get_scheduler
from constants import ScanKinds
from logging_config import get_logger
from config import config

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])
logger = get_logger("notifications")

SCAN_KINDS = {ScanKinds.REMINDERS, ScanKinds.DUE_TODAY, ScanKinds.OVERDUE, ScanKinds.ALL}


def _require_ids(body: NotificationIdsRequest):
    if body.notification_ids is None:
        raise HTTPException(status_code=400, detail="notification_ids must be an array")
    if not body.notification_ids:
        raise HTTPException(status_code=400, detail="notification_ids array cannot be empty")
    return body.notification_ids


def _require_development():
    if config.ENV == "production":
        raise HTTPException(status_code=403, detail="This endpoint is only available in development")


@router.get("")
async def get_notifications(
    read: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=200),
    skip: int = Query(0, ge=0),
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository)
):
    """Get notifications for the current user, newest first."""
    items = await notifications.list_for_user(current_user.id, read=read, limit=limit, skip=skip)
    return {"count": len(items), "data": [n.model_dump(mode="json") for n in items]}


@router.get("/unread-count")
async def get_unread_count(
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository)
):
    """Get count of unread notifications."""
    count = await notifications.unread_count(current_user.id)
    return {"count": count}


@router.patch("/read")
async def mark_as_read(
    body: NotificationIdsRequest,
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository)
):
    """Mark the given notifications as read."""
    ids = _require_ids(body)
    modified = await notifications.mark_read(ids, current_user.id)
    return {"message": f"{modified} notification(s) marked as read", "modified_count": modified}


@router.patch("/read-all")
async def mark_all_read(
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository)
):
    """Mark all notifications as read for the current user."""
    modified = await notifications.mark_all_read(current_user.id)
    return {"message": f"{modified} notification(s) marked as read", "modified_count": modified}


@router.delete("")
async def delete_notifications(
    body: NotificationIdsRequest,
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository)
):
    """Delete the given notifications."""
    ids = _require_ids(body)
    deleted = await notifications.delete(ids, current_user.id)
    if deleted == 0:
        logger.warning(f"No notifications deleted", extra={"data": {"notification_ids": ids}})
    return {"message": f"{deleted} notification(s) deleted", "deleted_count": deleted}


@router.post("/test", status_code=201)
async def create_test_notification(
    body: DevNotificationRequest,
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository)
):
    """Create an ad-hoc notification for the current user (development only)."""
    _require_development()
    if not body.title or not body.message:
        raise HTTPException(status_code=400, detail="title and message are required")

    notification = await notifications.create(
        user_id=current_user.id,
        type=body.type,
        title=body.title,
        message=body.message,
        action_url="/dashboard",
    )
    return notification.model_dump(mode="json")


@router.post("/process")
async def process_notifications_now(
    body: Optional[ProcessNotificationsRequest] = None,
    current_user: UserModel = Depends(get_current_user),
    scheduler: NotificationScheduler = Depends(get_scheduler)
):
    """Run the notification scans immediately (development only)."""
    _require_development()
    kind = body.kind if body else ScanKinds.ALL
    if kind not in SCAN_KINDS:
        raise HTTPException(status_code=400, detail=f"kind must be one of {sorted(SCAN_KINDS)}")

    results = await scheduler.run_now(kind)
    total = sum(r.processed for r in results.values())
    logger.info(f"Manual notification scan", extra={"data": {"kind": kind, "total_processed": total}})
    return {
        "kind": kind,
        "total_processed": total,
        "results": {name: r.model_dump() for name, r in results.items()},
    }
