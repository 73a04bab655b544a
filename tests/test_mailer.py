import json
import logging

import httpx
import pytest

from core import mailer


@pytest.fixture
def relay(monkeypatch):
    """Route mailer traffic to an in-process handler."""
    seen: list[httpx.Request] = []
    status = {"code": 202}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status["code"], text="relay says hi")

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        mailer.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    monkeypatch.setenv("MAILER_URL", "https://mail.example.com/send")
    monkeypatch.setenv("MAILER_TOKEN", "relay-token")
    return seen, status


async def test_without_relay_the_message_is_logged(caplog):
    with caplog.at_level(logging.INFO, logger="core.mailer"):
        await mailer.send_password_reset(to="a@example.com", reset_link="http://x/reset-password?token=t")

    assert "mail_not_sent" in caplog.text
    assert "reset-password?token=t" in caplog.text


async def test_relay_receives_json_with_bearer_token(relay):
    seen, _ = relay

    await mailer.send_password_reset(to="a@example.com", reset_link="https://x/reset-password?token=t")

    (request,) = seen
    assert request.headers["authorization"] == "Bearer relay-token"
    body = json.loads(request.content)
    assert body["to"] == "a@example.com"
    assert "https://x/reset-password?token=t" in body["text"]


async def test_relay_rejection_raises(relay):
    _, status = relay
    status["code"] = 500

    with pytest.raises(mailer.MailerError, match="500"):
        await mailer.send_mail(to="a@example.com", subject="s", text="t")
