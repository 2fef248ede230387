"""Shared test fixtures for the mailpeek test suite."""

from __future__ import annotations

from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

import httpx
import pytest

from mailpeek.config import Settings
from mailpeek.models import Credentials

TOKEN_URL = "https://login.test/consumers/oauth2/v2.0/token"
GRAPH_URL = "https://graph.test/v1.0"


def _test_settings(**overrides) -> Settings:
    """Create Settings with test defaults."""
    defaults: dict[str, Any] = {
        "token_url": TOKEN_URL,
        "graph_base_url": GRAPH_URL,
        "imap_host": "imap.test.com",
        "imap_port": 993,
        "password": None,
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def settings() -> Settings:
    return _test_settings()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    return _test_settings


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        refresh_token="rt-123",
        client_id="client-abc",
        mailbox_identity="user@outlook.com",
    )


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    subject: str | None = "Test Subject",
    from_addr: str | None = "Sender <sender@example.com>",
    body: str = "Hello, World!",
    date: str | None = "Sun, 01 Jun 2025 12:00:00 +0000",
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain")
    if subject is not None:
        msg["Subject"] = subject
    if from_addr is not None:
        msg["From"] = from_addr
    msg["To"] = "user@outlook.com"
    if date is not None:
        msg["Date"] = date
    return msg.as_bytes()


def _build_multipart_email(
    *,
    body_text: str = "Plain body",
    body_html: str = "<p>HTML body</p>",
    date: str = "Sun, 01 Jun 2025 12:00:00 +0000",
) -> bytes:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = "Multipart Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "user@outlook.com"
    msg["Date"] = date
    msg.attach(MIMEText(body_text, "plain"))
    msg.attach(MIMEText(body_html, "html"))
    return msg.as_bytes()


@pytest.fixture
def build_plain_email() -> Callable[..., bytes]:
    return _build_plain_email


@pytest.fixture
def build_multipart_email() -> Callable[..., bytes]:
    return _build_multipart_email


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email()


# ------------------------------------------------------------------
# Graph payload builders
# ------------------------------------------------------------------


def _graph_message(
    *,
    address: str | None = "sender@example.com",
    subject: str | None = "Graph Subject",
    preview: str | None = "Preview text",
    html: str | None = "<p>Body</p>",
    received: str | None = "2025-06-01T12:00:00Z",
    created: str | None = "2025-06-01T11:59:00Z",
) -> dict[str, Any]:
    item: dict[str, Any] = {
        "subject": subject,
        "bodyPreview": preview,
        "body": {"contentType": "html", "content": html},
        "receivedDateTime": received,
        "createdDateTime": created,
    }
    if address is not None:
        item["from"] = {"emailAddress": {"name": "Sender", "address": address}}
    return item


@pytest.fixture
def graph_message() -> Callable[..., dict[str, Any]]:
    return _graph_message
