"""
Shared schema base classes.

Request bodies accept camelCase (as sent by the bot and the web panel) as well
as snake_case field names; responses are serialized in camelCase.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for every request/response schema."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


def serialize_utc(v: Optional[datetime]) -> Optional[str]:
    """Serialize datetime as ISO 8601 with explicit UTC timezone."""
    if v is None:
        return None
    if v.tzinfo is not None:
        v = v.astimezone(timezone.utc).replace(tzinfo=None)
    return v.isoformat() + "Z"


class AdminRequest(ApiModel):
    """Body of admin-only endpoints that carry no other data."""

    developer_id: str = Field(
        ...,
        validation_alias=AliasChoices("developerId", "developer_id", "adminId"),
        description="Caller id, checked against the admin policy",
    )


class SuccessResponse(ApiModel):
    """Generic acknowledgement."""

    success: bool = True
    message: Optional[str] = None


class ErrorResponse(ApiModel):
    """Body of every failed request."""

    success: bool = False
    error: str = Field(..., description="Human-readable error message")


class DeliveryWarnings(ApiModel):
    """Mixin for responses that may report failed outbound deliveries."""

    warnings: List[str] = Field(
        default_factory=list,
        description="Outbound deliveries (companion bot, webhook) that failed; the operation itself succeeded",
    )
