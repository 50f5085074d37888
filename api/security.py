"""
Webhook authentication
"""
from __future__ import annotations

import hmac

from fastapi import Header, HTTPException, Request

from reel_relay.utils.logger import logger


SECRET_TOKEN_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def is_valid_secret(expected: str | None, received: str | None) -> bool:
    """Constant-time comparison; an unset secret never matches."""
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


def verify_secret_token(
    request: Request,
    x_telegram_bot_api_secret_token: str | None = Header(default=None),
) -> None:
    """
    FastAPI dependency guarding the webhook route.

    Raises:
        HTTPException: 401 if the header does not match the configured secret
    """
    expected = request.app.state.config.telegram_secret_token
    if not is_valid_secret(expected, x_telegram_bot_api_secret_token):
        logger.warning("Rejected update due to invalid secret token header")
        raise HTTPException(status_code=401, detail="Unauthorized")
