"""
Pydantic schemas for notification feed API request/response validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field, field_serializer

from premium_backend.models.records import Notification
from premium_backend.schemas.common import ApiModel, DeliveryWarnings, serialize_utc


class AnnounceRequest(ApiModel):
    """
    Schema for POST /notifications/announce.

    The minimum message length is enforced by the service (400 on failure).
    """

    developer_id: str = Field(
        ...,
        validation_alias=AliasChoices("developerId", "developer_id", "userId"),
    )
    title: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(..., max_length=2000)
    is_persistent: bool = Field(
        default=False,
        description="Repeat the message in the feed until another announcement replaces it",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "developerId": "1362553254117904496",
                "title": "Maintenance",
                "message": "The bot restarts at 18:00 UTC.",
                "isPersistent": True,
            }
        }
    }


class NotificationResponse(ApiModel):
    """Response schema for a single feed entry."""

    id: str
    type: str = Field(..., description="claim, announcement or trial")
    title: str
    message: str
    author: str
    timestamp: datetime
    repeating: bool = False

    @field_serializer("timestamp")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    @classmethod
    def from_record(cls, record: Notification) -> "NotificationResponse":
        return cls(
            id=record.id,
            type=record.type.value,
            title=record.title,
            message=record.message,
            author=record.author,
            timestamp=record.timestamp,
            repeating=record.repeating,
        )


class NotificationListResponse(ApiModel):
    """Response for GET /notifications (newest first)."""

    success: bool = True
    notifications: List[NotificationResponse] = Field(default_factory=list)


class AnnounceResponse(DeliveryWarnings):
    """Response for POST /notifications/announce."""

    success: bool = True
    notification: NotificationResponse
    persistent: bool


class DeleteLastResponse(ApiModel):
    """Response for POST /notifications/delete-last."""

    success: bool = True
    deleted: NotificationResponse
