from __future__ import annotations

import logging
from typing import Optional

import httpx

from ryd.core.config import settings

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class RecaptchaError(Exception):
    pass


def recaptcha_enabled() -> bool:
    return bool(settings.RECAPTCHA_SECRET)


async def verify_recaptcha(token: str, *, action: str, remote_ip: Optional[str] = None) -> float:
    """Check a v3 token for ``action`` ("signup" or "login").

    Returns the score, or raises RecaptchaError when the token is missing,
    rejected, issued for another action, or scored below the threshold.
    """
    if not recaptcha_enabled():
        raise RecaptchaError("reCAPTCHA not configured")
    if not token:
        raise RecaptchaError("Missing reCAPTCHA token")

    form = {"secret": settings.RECAPTCHA_SECRET, "response": token}
    if remote_ip:
        form["remoteip"] = remote_ip

    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.post(VERIFY_URL, data=form)
        response.raise_for_status()
        result = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("recaptcha_request_failed", extra={"action": action})
        raise RecaptchaError("Unable to verify reCAPTCHA") from exc

    if not result.get("success"):
        logger.warning("recaptcha_rejected", extra={"action": action, "errors": result.get("error-codes")})
        raise RecaptchaError("reCAPTCHA validation failed")
    if result.get("action") and result["action"] != action:
        logger.warning("recaptcha_action_mismatch", extra={"expected": action, "received": result["action"]})
        raise RecaptchaError("reCAPTCHA validation failed")

    score = result.get("score")
    if score is None or float(score) < settings.RECAPTCHA_MIN_SCORE:
        raise RecaptchaError("reCAPTCHA score too low")
    return float(score)
