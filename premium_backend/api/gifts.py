"""
Gift API endpoints.

Provides:
- List the visible site-wide gift
- Send a trial (alias of POST /trials/send kept for the web panel)
- Claim a site-wide gift or a personal code
- Transfer a premium code to another user
- List a user's unredeemed gifts

Design:
- Services are injected per request (see api/dependencies.py)
- Service errors propagate to the application exception handlers, which
  render ``{"success": false, "error": ...}`` with the error's status code
- Claim and transfer are rate limited per client address
- Handlers are plain functions run in the threadpool; store access and
  outbound delivery block
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from premium_backend.api.dependencies import get_gift_service
from premium_backend.api.limiter import CLAIM_RATE_LIMIT, TRANSFER_RATE_LIMIT, limiter
from premium_backend.schemas.common import ErrorResponse, SuccessResponse
from premium_backend.schemas.gifts import (
    AccessCodeResponse,
    ClaimRequest,
    ClaimResponse,
    SendGiftRequest,
    SendGiftResponse,
    SiteWideGiftResponse,
    TransferRequest,
    UserGiftsResponse,
    VisibleGiftsResponse,
)
from premium_backend.services.exceptions import ValidationError
from premium_backend.services.gift_service import GiftService, SendResult
from premium_backend.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/gifts",
    tags=["Gifts"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)


def send_result_response(result: SendResult) -> SendGiftResponse:
    """Build the response shared by /gifts/send and /trials/send."""
    access_code = result.access_code
    return SendGiftResponse(
        code=access_code.code,
        duration=access_code.duration.value if access_code.duration else None,
        target_id=result.target_id,
        site_wide=result.site_wide,
        expires_at=access_code.expires_at,
        warnings=result.delivery.warnings,
    )


@router.get(
    "",
    response_model=VisibleGiftsResponse,
    summary="List visible gifts",
    description="The active site-wide gift, hidden once the given user has claimed it",
)
def list_gifts(
    user_id: Optional[str] = Query(None, alias="userId", description="Hide gifts this user already claimed"),
    gift_service: GiftService = Depends(get_gift_service),
) -> VisibleGiftsResponse:
    gifts = gift_service.list_visible(user_id)
    return VisibleGiftsResponse(gifts=[SiteWideGiftResponse.from_record(g) for g in gifts])


@router.post(
    "/send",
    response_model=SendGiftResponse,
    summary="Send a trial gift",
    description="Send a trial code to one user or to everyone (developer only)",
)
def send_gift(
    body: SendGiftRequest,
    gift_service: GiftService = Depends(get_gift_service),
) -> SendGiftResponse:
    """
    Send a trial code.

    Example:
        POST /api/gifts/send
        {"developerId": "1362553254117904496", "targetId": "all", "duration": "7D"}

        Response:
        {"success": true, "code": "SB-TRIAL-7D-PRISM", "siteWide": true, ...}
    """
    result = gift_service.send_trial(body.developer_id, body.target_id, body.duration)
    return send_result_response(result)


@router.post(
    "/claim",
    response_model=ClaimResponse,
    summary="Claim a gift",
    description="Claim the site-wide gift or one of the caller's personal codes",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(CLAIM_RATE_LIMIT)
def claim_gift(
    request: Request,
    body: ClaimRequest,
    gift_service: GiftService = Depends(get_gift_service),
) -> ClaimResponse:
    result = gift_service.redeem(body.user_id, code=body.code, gift_id=body.gift_id)
    return ClaimResponse(
        code=result.code,
        expires_at=result.expires_at,
        site_wide=result.site_wide,
        warnings=result.delivery.warnings,
    )


@router.post(
    "/transfer",
    response_model=SuccessResponse,
    summary="Transfer a premium code",
    description="Give a copy of a premium code to another user",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(TRANSFER_RATE_LIMIT)
def transfer_code(
    request: Request,
    body: TransferRequest,
    gift_service: GiftService = Depends(get_gift_service),
) -> SuccessResponse:
    gift_service.transfer(body.giver_id, body.recipient_id, body.code)
    return SuccessResponse(message="Code transferred")


@router.get(
    "/user",
    response_model=UserGiftsResponse,
    summary="List a user's gifts",
    description="Unredeemed codes of a user, the unclaimed site-wide gift first",
    responses={401: {"model": ErrorResponse}},
)
def list_user_gifts(
    user_id: str = Query("", alias="userId"),
    gift_service: GiftService = Depends(get_gift_service),
) -> UserGiftsResponse:
    try:
        codes = gift_service.list_unredeemed(user_id.strip())
    except ValidationError as e:
        logger.warning("Rejected gift listing", extra={"user_id": user_id})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    return UserGiftsResponse(gifts=[AccessCodeResponse.from_record(c) for c in codes])
