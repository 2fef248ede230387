"""IMAP fallback session: XOAUTH2 login, read-only select, tail fetch.

Blocking ``imaplib`` calls run in worker threads via ``asyncio.to_thread``
so the event loop stays free while the server answers.
"""

from __future__ import annotations

import asyncio
import base64
import imaplib
import ssl
from dataclasses import dataclass
from enum import Enum

import structlog

from .config import Settings
from .errors import (
    FetchError,
    FolderError,
    MailConnectionError,
    ParseError,
    SearchError,
)
from .models import NormalizedEmail, most_recent_first
from .parser import MimeParser

logger = structlog.get_logger()


class SessionState(str, Enum):
    """Lifecycle of one :class:`ImapMailSession`."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    FOLDER_SELECTED = "folder_selected"
    SEARCHING = "searching"
    FETCHING = "fetching"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class FetchedMessage:
    """Raw message body as returned by the bulk FETCH."""

    seq: str
    raw_bytes: bytes


class ImapMailSession:
    """One-shot IMAP session that returns the newest messages of a folder.

    The session walks ``DISCONNECTED → CONNECTING → READY →
    FOLDER_SELECTED → SEARCHING → FETCHING → COMPLETE``; any failure moves
    it to ``FAILED``.  The connection is always torn down before
    :meth:`retrieve` returns or raises.
    """

    def __init__(self, settings: Settings, parser: MimeParser | None = None) -> None:
        self._settings = settings
        self._parser = parser or MimeParser()
        self._conn: imaplib.IMAP4_SSL | None = None
        self._state = SessionState.DISCONNECTED

    @property
    def state(self) -> SessionState:
        return self._state

    def _transition(self, state: SessionState) -> None:
        logger.debug("imap_session_state", previous=self._state.value, state=state.value)
        self._state = state

    # ------------------------------------------------------------------
    # Full lifecycle
    # ------------------------------------------------------------------

    async def retrieve(
        self,
        identity: str,
        credential: str,
        folder: str,
        limit: int,
    ) -> list[NormalizedEmail]:
        """Connect, select *folder*, fetch the last *limit* messages, disconnect.

        *credential* is the base64 XOAUTH2 string for *identity*.
        """
        try:
            await self.connect(identity, credential)
            await self.select_folder(folder)
            ids = await self.search()
            if not ids:
                self._transition(SessionState.COMPLETE)
                return []
            emails = await self.fetch(ids, limit)
            self._transition(SessionState.COMPLETE)
            return emails
        except Exception:
            self._transition(SessionState.FAILED)
            raise
        finally:
            await self.close()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def connect(self, identity: str, credential: str) -> None:
        """Open the TLS connection and authenticate with XOAUTH2."""
        self._transition(SessionState.CONNECTING)
        try:
            await asyncio.to_thread(self._connect_sync, credential)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.error("imap_connect_failed", host=self._settings.imap_host, error=str(exc))
            raise MailConnectionError(f"IMAP connection failed: {exc}") from exc
        self._transition(SessionState.READY)
        logger.info("imap_connected", host=self._settings.imap_host, user=identity)

    def _connect_sync(self, credential: str) -> None:
        self._conn = imaplib.IMAP4_SSL(
            self._settings.imap_host,
            self._settings.imap_port,
            ssl_context=self._ssl_context(),
        )
        # imaplib base64-encodes the mechanism response itself
        raw = base64.b64decode(credential)
        status, data = self._conn.authenticate("XOAUTH2", lambda _: raw)
        if status != "OK":
            raise imaplib.IMAP4.error(f"AUTHENTICATE rejected: {_describe(data)}")

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._settings.imap_verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def select_folder(self, folder: str) -> None:
        """Select *folder* read-only so no flags change."""
        assert self._conn is not None, "Not connected"
        try:
            mailbox = _quote_mailbox(encode_mailbox(folder))
            status, data = await asyncio.to_thread(self._conn.select, mailbox, readonly=True)
        except (imaplib.IMAP4.error, OSError, UnicodeError) as exc:
            raise FolderError(f"Cannot open mailbox {folder}: {exc}") from exc
        if status != "OK":
            raise FolderError(f"Cannot open mailbox {folder}: {_describe(data)}")
        self._transition(SessionState.FOLDER_SELECTED)

    async def search(self) -> list[str]:
        """Return all sequence numbers in the folder, oldest first."""
        assert self._conn is not None, "Not connected"
        self._transition(SessionState.SEARCHING)
        try:
            status, data = await asyncio.to_thread(self._conn.search, None, "ALL")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise SearchError(f"IMAP search failed: {exc}") from exc
        if status != "OK":
            raise SearchError(f"IMAP search failed: {_describe(data)}")

        ids = [seq.decode() for seq in (data[0] or b"").split()] if data else []
        logger.debug("imap_search_complete", matched=len(ids))
        return ids

    async def fetch(self, ids: list[str], limit: int) -> list[NormalizedEmail]:
        """Fetch the last *limit* of *ids* in one FETCH and parse each body.

        Each body is parsed in its own task and writes into its own slot;
        a message that fails to parse is logged and left out.
        """
        assert self._conn is not None, "Not connected"
        tail = ids[-limit:] if limit > 0 else []
        if not tail:
            return []

        self._transition(SessionState.FETCHING)
        try:
            fetched = await asyncio.to_thread(self._fetch_sync, tail)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.error("imap_fetch_failed", error=str(exc))
            raise FetchError(str(exc)) from exc

        slots: list[NormalizedEmail | None] = [None] * len(fetched)
        async with asyncio.TaskGroup() as tg:
            for index, message in enumerate(fetched):
                tg.create_task(self._parse_into(slots, index, message))

        emails = [email for email in slots if email is not None]
        logger.info(
            "imap_fetch_complete",
            requested=len(tail),
            fetched=len(fetched),
            parsed=len(emails),
        )
        return most_recent_first(emails, limit)

    def _fetch_sync(self, seqs: list[str]) -> list[FetchedMessage]:
        assert self._conn is not None
        status, data = self._conn.fetch(",".join(seqs), "(BODY.PEEK[])")
        if status != "OK":
            raise imaplib.IMAP4.error(f"FETCH failed: {_describe(data)}")

        messages: list[FetchedMessage] = []
        for item in data or []:
            # Literal responses arrive as (b"<seq> (BODY[] {n}", body) pairs;
            # the closing b")" entries carry no data
            if not isinstance(item, tuple) or len(item) < 2:
                continue
            header, body = item[0], item[1]
            seq = header.split(b" ", 1)[0].decode() if isinstance(header, bytes) else ""
            messages.append(FetchedMessage(seq=seq, raw_bytes=body or b""))
        return messages

    async def _parse_into(
        self,
        slots: list[NormalizedEmail | None],
        index: int,
        message: FetchedMessage,
    ) -> None:
        try:
            slots[index] = await asyncio.to_thread(self._parser.parse, message.raw_bytes)
        except ParseError as exc:
            logger.warning("message_parse_failed", seq=message.seq, error=str(exc))

    async def close(self) -> None:
        """Close the mailbox and log out; teardown errors are ignored."""
        if self._conn is not None:
            await asyncio.to_thread(self._close_sync)
            self._conn = None
            logger.info("imap_disconnected")

    def _close_sync(self) -> None:
        assert self._conn is not None
        for command in ("close", "logout"):
            try:
                getattr(self._conn, command)()
            except (imaplib.IMAP4.error, OSError) as exc:
                logger.debug("imap_teardown_error", command=command, error=str(exc))


def encode_mailbox(name: str) -> str:
    """Encode a mailbox name in IMAP modified UTF-7 (RFC 3501 section 5.1.3).

    Printable ASCII passes through, "&" becomes "&-", and each run of other
    characters becomes "&" + base64 of its UTF-16BE form (with "," for "/"
    and no padding) + "-".
    """
    out: list[str] = []
    run: list[str] = []

    def flush() -> None:
        if run:
            utf16 = "".join(run).encode("utf-16-be")
            out.append("&" + base64.b64encode(utf16).decode("ascii").rstrip("=").replace("/", ",") + "-")
            run.clear()

    for ch in name:
        if "\x20" <= ch <= "\x7e":
            flush()
            out.append("&-" if ch == "&" else ch)
        else:
            run.append(ch)
    flush()
    return "".join(out)


def _quote_mailbox(name: str) -> str:
    """Quote mailbox names that are not a bare IMAP atom."""
    if name.startswith('"') or not any(ch in name for ch in ' "(){%*\\'):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _describe(data: object) -> str:
    if isinstance(data, list) and data:
        first = data[0]
        return first.decode(errors="replace") if isinstance(first, bytes) else str(first)
    return str(data)
