"""MIME parser for IMAP-fetched messages: raw RFC 822 bytes to
:class:`NormalizedEmail`.
"""

from __future__ import annotations

import email
import email.policy
import email.utils
from datetime import datetime

from .errors import ParseError
from .models import NormalizedEmail

_TEXT_TYPES = ("text/plain", "text/html")


class MimeParser:
    """Stateless parser: raw RFC 822 bytes → NormalizedEmail.

    Any failure is raised as :class:`ParseError` so the caller can drop
    the one message and keep the rest.
    """

    def parse(self, raw_bytes: bytes) -> NormalizedEmail:
        if not raw_bytes:
            raise ParseError("empty message body")

        try:
            msg = email.message_from_bytes(raw_bytes, policy=email.policy.default)
            body_text, body_html = self._extract_bodies(msg)
            subject = msg.get("Subject")
            return NormalizedEmail(
                sender=str(msg.get("From", "")),
                subject=str(subject) if subject is not None else None,
                text_body=body_text,
                html_body=body_html,
                timestamp=self._parse_date(msg.get("Date")),
            )
        except Exception as exc:
            raise ParseError(f"could not parse message: {exc}") from exc

    def _extract_bodies(self, msg: email.message.Message) -> tuple[str | None, str | None]:
        """Return the first inline (text/plain, text/html) bodies found."""
        bodies: dict[str, str] = {}
        for part in msg.walk():
            if part.is_multipart() or part.is_attachment():
                continue
            content_type = part.get_content_type()
            if content_type not in _TEXT_TYPES or content_type in bodies:
                continue
            text = _part_text(part)
            if text is not None:
                bodies[content_type] = text
        return bodies.get("text/plain"), bodies.get("text/html")

    def _parse_date(self, header_value: object) -> datetime | None:
        if not header_value:
            return None
        try:
            return email.utils.parsedate_to_datetime(str(header_value))
        except (TypeError, ValueError):
            return None


def _part_text(part: email.message.Message) -> str | None:
    """Decoded text of one leaf part.

    An unknown or lying charset falls back to lossy UTF-8 so the rest of
    the message is still usable.
    """
    try:
        content = part.get_content()
    except (LookupError, UnicodeError):
        payload = part.get_payload(decode=True)
        if not isinstance(payload, bytes):
            return None
        return payload.decode("utf-8", errors="replace")
    return content if isinstance(content, str) else None
