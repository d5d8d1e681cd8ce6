"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from premium_backend.schemas.common import (
    AdminRequest,
    ApiModel,
    ErrorResponse,
    SuccessResponse,
)
from premium_backend.schemas.gifts import (
    AccessCodeResponse,
    ClaimRequest,
    ClaimResponse,
    ClearGlobalResponse,
    SendGiftRequest,
    SendGiftResponse,
    SendTrialRequest,
    SiteWideGiftResponse,
    TransferRequest,
    UserGiftsResponse,
    VisibleGiftsResponse,
)
from premium_backend.schemas.notifications import (
    AnnounceRequest,
    AnnounceResponse,
    DeleteLastResponse,
    NotificationListResponse,
    NotificationResponse,
)

__all__ = [
    "AdminRequest",
    "ApiModel",
    "ErrorResponse",
    "SuccessResponse",
    "AccessCodeResponse",
    "ClaimRequest",
    "ClaimResponse",
    "ClearGlobalResponse",
    "SendGiftRequest",
    "SendGiftResponse",
    "SendTrialRequest",
    "SiteWideGiftResponse",
    "TransferRequest",
    "UserGiftsResponse",
    "VisibleGiftsResponse",
    "AnnounceRequest",
    "AnnounceResponse",
    "DeleteLastResponse",
    "NotificationListResponse",
    "NotificationResponse",
]
