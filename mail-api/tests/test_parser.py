"""Tests for mailpeek.parser."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from email import message_from_bytes
from email.mime.text import MIMEText

import pytest

from mailpeek.errors import ParseError
from mailpeek.parser import MimeParser


@pytest.fixture
def parser() -> MimeParser:
    return MimeParser()


class TestMimeParserPlainText:
    def test_parse_plain_email(self, parser: MimeParser, plain_eml_bytes: bytes):
        result = parser.parse(plain_eml_bytes)
        assert result.sender == "Sender <sender@example.com>"
        assert result.subject == "Test Subject"
        assert result.text_body == "Hello, World!"
        assert result.html_body is None
        assert result.timestamp == datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

    def test_date_with_offset(self, parser: MimeParser, build_plain_email):
        result = parser.parse(build_plain_email(date="Sun, 01 Jun 2025 14:00:00 +0200"))
        assert result.timestamp == datetime(2025, 6, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert result.timestamp == datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


class TestMimeParserMultipart:
    def test_parse_multipart_bodies(self, parser: MimeParser, build_multipart_email):
        result = parser.parse(build_multipart_email(body_text="Plain text", body_html="<p>HTML</p>"))
        assert result.text_body == "Plain text"
        assert result.html_body == "<p>HTML</p>"
        assert result.sender == "sender@example.com"


class TestMimeParserMissingFields:
    def test_missing_from(self, parser: MimeParser, build_plain_email):
        assert parser.parse(build_plain_email(from_addr=None)).sender == ""

    def test_missing_subject(self, parser: MimeParser, build_plain_email):
        assert parser.parse(build_plain_email(subject=None)).subject is None

    def test_missing_date(self, parser: MimeParser, build_plain_email):
        assert parser.parse(build_plain_email(date=None)).timestamp is None

    def test_garbage_date(self, parser: MimeParser, build_plain_email):
        assert parser.parse(build_plain_email(date="not a date")).timestamp is None


class TestMimeParserFailures:
    def test_empty_bytes_raise(self, parser: MimeParser):
        with pytest.raises(ParseError):
            parser.parse(b"")

    def test_unexpected_error_is_wrapped(self, parser: MimeParser, plain_eml_bytes: bytes, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("broken part")

        monkeypatch.setattr(MimeParser, "_extract_bodies", boom)
        with pytest.raises(ParseError, match="broken part"):
            parser.parse(plain_eml_bytes)


class TestMimeParserCharsets:
    RAW_HEADERS = (
        b"From: a@b.com\r\n"
        b"Subject: hello\r\n"
        b"Date: Sun, 01 Jun 2025 12:00:00 +0000\r\n"
        b"MIME-Version: 1.0\r\n"
    )

    def test_unknown_charset_keeps_message(self, parser: MimeParser):
        raw = self.RAW_HEADERS + b"Content-Type: text/plain; charset=x-bogus\r\n\r\nbody"

        result = parser.parse(raw)

        assert result.sender == "a@b.com"
        assert result.subject == "hello"
        assert result.timestamp == datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
        assert result.text_body == "body"

    def test_unknown_charset_in_one_part_keeps_the_other(self, parser: MimeParser):
        raw = self.RAW_HEADERS + (
            b'Content-Type: multipart/alternative; boundary="b1"\r\n\r\n'
            b"--b1\r\n"
            b"Content-Type: text/plain; charset=x-bogus\r\n\r\n"
            b"caf\xe9\r\n"
            b"--b1\r\n"
            b"Content-Type: text/html; charset=utf-8\r\n\r\n"
            b"<p>ok</p>\r\n"
            b"--b1--\r\n"
        )

        result = parser.parse(raw)

        assert result.text_body is not None
        assert result.text_body.startswith("caf")
        assert result.html_body is not None
        assert "<p>ok</p>" in result.html_body


class TestMimeParserAttachments:
    def test_text_attachment_is_not_a_body(self, parser: MimeParser, build_multipart_email):
        msg = message_from_bytes(build_multipart_email(body_text="inline"))
        attachment = MIMEText("attached text", "plain")
        attachment.add_header("Content-Disposition", "attachment", filename="notes.txt")
        msg.get_payload().insert(0, attachment)

        result = parser.parse(msg.as_bytes())

        assert result.text_body is not None
        assert result.text_body.strip() == "inline"
