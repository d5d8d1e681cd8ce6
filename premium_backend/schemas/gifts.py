"""
Pydantic schemas for gift and trial API request/response validation.

Provides data validation and serialization for:
- Sending trials (personal or site-wide)
- Claiming and transferring codes
- Listing visible and unredeemed gifts

Durations and id formats are validated by the service layer so that every
rule lives in one place; these schemas only check presence and types.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field, field_serializer

from premium_backend.models.records import AccessCode, SiteWideGift
from premium_backend.schemas.common import ApiModel, DeliveryWarnings, serialize_utc


# ============================================================================
# Request Schemas
# ============================================================================


class SendGiftRequest(ApiModel):
    """
    Schema for POST /gifts/send.

    ``userId`` is accepted as the caller id for older bot builds.
    """

    developer_id: str = Field(
        ...,
        validation_alias=AliasChoices("developerId", "developer_id", "userId", "user_id"),
    )
    target_id: str = Field(
        default="all",
        validation_alias=AliasChoices("targetId", "target_id"),
        description="User id (16-20 digits) or 'all'/'everyone'",
    )
    duration: str = Field(..., description="1D, 3D, 7D, 14D or 30D")

    model_config = {
        "json_schema_extra": {
            "example": {
                "developerId": "1362553254117904496",
                "targetId": "all",
                "duration": "7D",
            }
        }
    }


class SendTrialRequest(ApiModel):
    """Schema for POST /trials/send."""

    developer_id: str = Field(
        ...,
        validation_alias=AliasChoices("developerId", "developer_id"),
    )
    target_user_id: str = Field(
        ...,
        validation_alias=AliasChoices("targetUserId", "target_user_id"),
        description="User id (16-20 digits) or 'all'/'everyone'",
    )
    duration: str


class ClaimRequest(ApiModel):
    """Schema for POST /gifts/claim; either ``code`` or ``giftId`` is required."""

    user_id: str
    code: Optional[str] = None
    gift_id: Optional[str] = None


class TransferRequest(ApiModel):
    """Schema for POST /gifts/transfer."""

    giver_id: str
    recipient_id: str
    code: str


# ============================================================================
# Response Schemas
# ============================================================================


class AccessCodeResponse(ApiModel):
    """A code as shown in a user's gift list."""

    code: str
    duration: Optional[str] = None
    title: str = ""
    description: str = ""
    source: str
    sent_by: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    redeemed: bool = False

    @field_serializer("issued_at", "expires_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    @classmethod
    def from_record(cls, record: AccessCode) -> "AccessCodeResponse":
        return cls(
            code=record.code,
            duration=record.duration.value if record.duration else None,
            title=record.title,
            description=record.description,
            source=record.source.value,
            sent_by=record.sent_by,
            issued_at=record.issued_at,
            expires_at=record.expires_at,
            redeemed=record.redeemed,
        )


class SiteWideGiftResponse(ApiModel):
    """The active site-wide gift as shown by GET /gifts."""

    id: str
    code: str
    title: str
    description: str
    duration: Optional[str] = None
    sent_by: str
    created_at: Optional[datetime] = None

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    @classmethod
    def from_record(cls, record: SiteWideGift) -> "SiteWideGiftResponse":
        return cls(
            id=record.id,
            code=record.code,
            title=record.title,
            description=record.description,
            duration=record.duration.value if record.duration else None,
            sent_by=record.sent_by,
            created_at=record.created_at,
        )


class VisibleGiftsResponse(ApiModel):
    """Response for GET /gifts."""

    success: bool = True
    gifts: List[SiteWideGiftResponse] = Field(default_factory=list)


class UserGiftsResponse(ApiModel):
    """Response for GET /gifts/user: unredeemed codes only."""

    success: bool = True
    gifts: List[AccessCodeResponse] = Field(default_factory=list)


class SendGiftResponse(DeliveryWarnings):
    """Response for POST /gifts/send and POST /trials/send."""

    success: bool = True
    code: str
    duration: Optional[str] = None
    target_id: str
    site_wide: bool
    expires_at: Optional[datetime] = None

    @field_serializer("expires_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)


class ClaimResponse(DeliveryWarnings):
    """Response for POST /gifts/claim."""

    success: bool = True
    code: str
    expires_at: Optional[datetime] = None
    site_wide: bool

    @field_serializer("expires_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)


class ClearGlobalResponse(ApiModel):
    """Response for POST /trials/clear-global."""

    success: bool = True
    cleared: bool = Field(..., description="False when no site-wide gift was active")
