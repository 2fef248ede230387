"""mailpeek: latest messages of a Microsoft mailbox via Graph or IMAP XOAUTH2."""

from .config import Settings
from .errors import (
    AuthError,
    FetchError,
    FolderError,
    MailConnectionError,
    MailpeekError,
    ParseError,
    ProtocolError,
    SearchError,
    ValidationError,
)
from .graph import GraphMailReader
from .imap_session import ImapMailSession, SessionState
from .models import AccessToken, Credentials, NormalizedEmail, ScopeProbeResult, most_recent_first
from .oauth import ScopeProbe, TokenExchanger
from .parser import MimeParser
from .retriever import MailRetriever
from .sasl import build_xoauth2_credential

__all__ = [
    "AccessToken",
    "AuthError",
    "Credentials",
    "FetchError",
    "FolderError",
    "GraphMailReader",
    "ImapMailSession",
    "MailConnectionError",
    "MailRetriever",
    "MailpeekError",
    "MimeParser",
    "NormalizedEmail",
    "ParseError",
    "ProtocolError",
    "ScopeProbe",
    "ScopeProbeResult",
    "SearchError",
    "SessionState",
    "Settings",
    "TokenExchanger",
    "ValidationError",
    "build_xoauth2_credential",
    "most_recent_first",
]
