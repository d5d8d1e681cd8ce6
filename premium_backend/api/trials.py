"""
Trial API endpoints (developer only).

Provides:
- Send a trial to one user or to everyone
- Clear the site-wide gift
"""

from fastapi import APIRouter, Depends

from premium_backend.api.dependencies import get_gift_service
from premium_backend.api.gifts import send_result_response
from premium_backend.schemas.common import AdminRequest, ErrorResponse
from premium_backend.schemas.gifts import ClearGlobalResponse, SendGiftResponse, SendTrialRequest
from premium_backend.services.gift_service import GiftService


router = APIRouter(
    prefix="/trials",
    tags=["Trials"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)


@router.post(
    "/send",
    response_model=SendGiftResponse,
    summary="Send a trial",
    description="Send a trial code to a user id, or 'all'/'everyone' for a site-wide gift",
)
def send_trial(
    body: SendTrialRequest,
    gift_service: GiftService = Depends(get_gift_service),
) -> SendGiftResponse:
    """
    Send a trial code.

    A second trial of the same duration to the same user replaces the first
    one if it has not been redeemed yet.
    """
    result = gift_service.send_trial(body.developer_id, body.target_user_id, body.duration)
    return send_result_response(result)


@router.post(
    "/clear-global",
    response_model=ClearGlobalResponse,
    summary="Clear the site-wide gift",
)
def clear_global(
    body: AdminRequest,
    gift_service: GiftService = Depends(get_gift_service),
) -> ClearGlobalResponse:
    cleared = gift_service.clear_global(body.developer_id)
    return ClearGlobalResponse(cleared=cleared)
