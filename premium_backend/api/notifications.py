"""
Notification feed API endpoints.

Provides:
- Read the feed (newest first); reading may re-post a due persistent
  announcement
- Post a developer announcement, optionally persistent
- Delete the most recent announcement
"""

from fastapi import APIRouter, Depends

from premium_backend.api.dependencies import get_notification_service
from premium_backend.schemas.common import AdminRequest, ErrorResponse
from premium_backend.schemas.notifications import (
    AnnounceRequest,
    AnnounceResponse,
    DeleteLastResponse,
    NotificationListResponse,
    NotificationResponse,
)
from premium_backend.services.notification_service import NotificationService
from premium_backend.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="Read the notification feed",
)
def list_notifications(
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """
    Return the feed, newest first.

    If a persistent announcement has been idle longer than the repeat
    interval, a fresh "(Repeating)" copy is posted before the feed is read.
    """
    entries = service.list_notifications()
    logger.debug("Listed notifications", extra={"count": len(entries)})
    return NotificationListResponse(
        notifications=[NotificationResponse.from_record(n) for n in entries]
    )


@router.post(
    "/announce",
    response_model=AnnounceResponse,
    summary="Post an announcement",
    description="Developer only; the message must be at least 5 characters",
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)
def announce(
    body: AnnounceRequest,
    service: NotificationService = Depends(get_notification_service),
) -> AnnounceResponse:
    result = service.announce(
        body.developer_id,
        body.message,
        persistent=body.is_persistent,
        title=body.title,
    )
    return AnnounceResponse(
        notification=NotificationResponse.from_record(result.notification),
        persistent=result.persistent,
        warnings=result.delivery.warnings,
    )


@router.post(
    "/delete-last",
    response_model=DeleteLastResponse,
    summary="Delete the latest announcement",
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
def delete_last(
    body: AdminRequest,
    service: NotificationService = Depends(get_notification_service),
) -> DeleteLastResponse:
    removed = service.delete_last_announcement(body.developer_id)
    return DeleteLastResponse(deleted=NotificationResponse.from_record(removed))
