"""Email sending via Resend API.

Simple HTTP POST to Resend for one-time code emails. Unlike link-based
mail, a code that was never delivered is useless, so delivery failures are
raised to the caller instead of being swallowed.
"""

import logging

import httpx

from campus_erp.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


class EmailDeliveryError(Exception):
    """The mail transport rejected or could not accept the message."""


async def send_otp_email(*, to_email: str, code: str, ttl_minutes: int) -> None:
    """Send a registration one-time code via Resend.

    Args:
        to_email: Recipient email address.
        code: The 6-digit code.
        ttl_minutes: Validity window quoted in the message body.

    Raises:
        EmailDeliveryError: If the API key is missing, the request fails,
            or Resend answers with a non-2xx status.
    """
    api_key = settings.resend_api_key.get_secret_value()
    if not api_key:
        raise EmailDeliveryError("RESEND_API_KEY is not set")

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                _RESEND_API_URL,
                headers={"Authorization": f"Bearer {api_key}"},
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": "Registration OTP",
                    "text": (
                        f"Your OTP is {code}. It is valid for {ttl_minutes} minutes."
                    ),
                    "html": (
                        f"<p>Your OTP is <strong>{code}</strong>. "
                        f"It is valid for {ttl_minutes} minutes.</p>"
                    ),
                },
                timeout=_RESEND_TIMEOUT,
            )
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Failed to send OTP email", exc_info=True)
        raise EmailDeliveryError("Failed to send OTP email") from exc
