"""
Outbound mail via an HTTP relay.

The relay receives a JSON POST:
    {"to": "...", "subject": "...", "text": "..."}
with an optional `Authorization: Bearer <MAILER_TOKEN>` header.

When MAILER_URL is not set (local dev) the message is logged instead.
"""

from __future__ import annotations

import logging
import os

import httpx

logger = logging.getLogger(__name__)


# Relay failures are explicit and separable from other runtime errors.
class MailerError(RuntimeError):
    pass


def mailer_url() -> str:
    return os.environ.get("MAILER_URL", "").strip()


def mailer_token() -> str:
    return os.environ.get("MAILER_TOKEN", "").strip()


async def send_mail(*, to: str, subject: str, text: str, timeout_s: float = 15.0) -> None:
    url = mailer_url()
    if not url:
        logger.info("mail_not_sent reason=no_relay to=%s subject=%r body=%r", to, subject, text)
        return None

    headers = {}
    token = mailer_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        async with httpx.AsyncClient(timeout=timeout_s) as client:
            resp = await client.post(
                url,
                json={"to": to, "subject": subject, "text": text},
                headers=headers,
            )
    except httpx.HTTPError as exc:
        raise MailerError(f"Mail relay request failed: {exc}") from exc

    if resp.status_code >= 300:
        body = resp.text[:300]
        raise MailerError(f"Mail relay rejected message: {resp.status_code} {body}")

    logger.info("mail_sent to=%s subject=%r", to, subject)


async def send_password_reset(*, to: str, reset_link: str) -> None:
    await send_mail(
        to=to,
        subject="Reset your password",
        text=(
            "We received a request to reset your password.\n\n"
            f"Open this link to choose a new one:\n{reset_link}\n\n"
            "If you did not ask for this, you can ignore this email."
        ),
    )
