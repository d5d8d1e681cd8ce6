"""
Rate limiter shared by the public gift endpoints.

Routes decorated with ``@limiter.limit(...)`` must accept a ``request: Request``
parameter. Limits are keyed by client address and switched off with
``SB_RATE_LIMIT_ENABLED=false``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from premium_backend.config.settings import get_settings


CLAIM_RATE_LIMIT = "10/minute"
TRANSFER_RATE_LIMIT = "5/minute"

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)
