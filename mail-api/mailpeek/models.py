"""Data models shared by the Graph and IMAP retrieval paths."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_OLDEST = datetime.min.replace(tzinfo=UTC)


class Credentials(BaseModel):
    """Per-call caller credentials. Never persisted."""

    model_config = ConfigDict(frozen=True)

    refresh_token: str
    client_id: str
    mailbox_identity: str


class AccessToken(BaseModel):
    """Result of one refresh-token grant."""

    model_config = ConfigDict(frozen=True)

    token: str
    granted_scope: frozenset[str] | None = None

    def has_scope(self, scope: str) -> bool:
        return self.granted_scope is not None and scope in self.granted_scope


class ScopeProbeResult(NamedTuple):
    access_token: str
    authorized: bool


class NormalizedEmail(BaseModel):
    """The single output record produced by either retrieval path.

    Field aliases are the wire names of the JSON response
    (``send``, ``subject``, ``text``, ``html``, ``date``).
    ``populate_by_name=True`` allows construction via either key.
    """

    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(default="", alias="send")
    subject: str | None = None
    text_body: str | None = Field(default=None, alias="text")
    html_body: str | None = Field(default=None, alias="html")
    timestamp: datetime | None = Field(default=None, alias="date")

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Naive datetimes cannot be compared with aware ones
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def most_recent_first(emails: Iterable[NormalizedEmail], limit: int) -> list[NormalizedEmail]:
    """Order *emails* newest first and keep at most *limit* of them.

    Messages without a timestamp sort after every dated message.
    """
    ordered = sorted(emails, key=lambda e: e.timestamp or _OLDEST, reverse=True)
    return ordered[: max(limit, 0)]
