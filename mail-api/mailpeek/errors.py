"""Error taxonomy for mail retrieval.

Every error that may reach the HTTP edge derives from :class:`MailpeekError`
and knows its status code and JSON payload.  :class:`ParseError` is raised
per message during IMAP fetches and never leaves the session.
"""

from __future__ import annotations


class MailpeekError(Exception):
    """Base class for all mail retrieval failures."""

    status_code: int = 500

    def to_payload(self) -> dict[str, str]:
        return {"error": str(self)}


class ValidationError(MailpeekError):
    """Caller input is missing or malformed."""

    status_code = 400


class AuthError(MailpeekError):
    """The OAuth2 token endpoint rejected the exchange or was unreachable."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.upstream_status = status_code
        self.body = body


class ProtocolError(MailpeekError):
    """The token endpoint answered with a payload we cannot use."""

    def __init__(self, message: str, *, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class MailConnectionError(MailpeekError):
    """IMAP connect or XOAUTH2 authentication failed."""


class FolderError(MailpeekError):
    """The requested IMAP folder could not be selected."""


class SearchError(MailpeekError):
    """IMAP SEARCH failed."""


class FetchError(MailpeekError):
    """The bulk IMAP FETCH failed at the transport or protocol level."""

    def to_payload(self) -> dict[str, str]:
        return {"error": "Fetch error", "details": str(self)}


class ParseError(MailpeekError):
    """A single fetched message could not be parsed."""
