"""
Consultation email tests (Resend API mocked with httpx.MockTransport)
"""

import json

import httpx
import pytest

from app.core.config import Settings
from app.services.oracle.notifier import (
    RESEND_API_URL,
    LoggingNotifier,
    ResendEmailNotifier,
    create_notifier,
    render_consultation_email,
)


def make_notifier(handler, development=False):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResendEmailNotifier(
        client,
        api_key="re_test",
        sender_email="oracle@example.com",
        development=development,
        developer_email="dev@example.com",
    )


async def test_sends_email_through_resend():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json={"id": "email-1"})

    notifier = make_notifier(handler)
    assert await notifier.notify("seeker@example.com", "Will I travel?", "Yes, soon.", name="Tama")

    request = requests[0]
    body = json.loads(request.content)
    assert str(request.url) == RESEND_API_URL
    assert request.headers["Authorization"] == "Bearer re_test"
    assert body["to"] == ["seeker@example.com"]
    assert body["from"] == "KiaOra Oracle <oracle@example.com>"
    assert body["subject"] == "Your Oracle Consultation"
    assert "Will I travel?" in body["html"]
    await notifier.close()


async def test_development_redirects_to_developer():
    sent_to = []

    def handler(request: httpx.Request):
        sent_to.extend(json.loads(request.content)["to"])
        return httpx.Response(200, json={"id": "email-2"})

    notifier = make_notifier(handler, development=True)
    assert await notifier.notify("seeker@example.com", "q", "r")
    assert sent_to == ["dev@example.com"]


async def test_api_error_returns_false():
    notifier = make_notifier(lambda request: httpx.Response(422, json={"message": "invalid from"}))
    assert await notifier.notify("seeker@example.com", "q", "r") is False


async def test_transport_error_returns_false():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("no route to host")

    notifier = make_notifier(handler)
    assert await notifier.notify("seeker@example.com", "q", "r") is False


async def test_logging_notifier_never_delivers():
    assert await LoggingNotifier().notify("seeker@example.com", "q", "r") is False


def test_email_body_escapes_user_text():
    body = render_consultation_email("<script>alert(1)</script>", "Be calm & kind", name="Tama")
    assert "<script>" not in body
    assert "&lt;script&gt;" in body
    assert "Be calm &amp; kind" in body
    assert "Kia ora Tama" in body


@pytest.mark.parametrize("api_key, expected", [("", LoggingNotifier), ("re_test", ResendEmailNotifier)])
def test_factory(api_key, expected):
    notifier = create_notifier(Settings(_env_file=None, resend_api_key=api_key))
    assert isinstance(notifier, expected)
