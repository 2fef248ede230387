"""Logical folder name mapping for the two retrieval paths."""

from __future__ import annotations

GRAPH_INBOX = "inbox"
GRAPH_JUNK = "junkemail"


def graph_folder_id(folder: str) -> str:
    """Map a logical folder to a Graph well-known folder name.

    ``INBOX`` (any casing) and ``Junk`` are recognised; everything else
    falls back to the inbox.
    """
    if folder.upper() == "INBOX":
        return GRAPH_INBOX
    if folder == "Junk":
        return GRAPH_JUNK
    return GRAPH_INBOX


def imap_folder_name(folder: str) -> str:
    """IMAP folder names are caller-controlled and passed through as-is."""
    return folder
