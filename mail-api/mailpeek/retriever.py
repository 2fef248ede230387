"""MailRetriever: pick the Graph or IMAP path and return the newest messages."""

from __future__ import annotations

import httpx
import structlog

from .config import Settings
from .folders import graph_folder_id, imap_folder_name
from .graph import GraphMailReader
from .imap_session import ImapMailSession
from .models import Credentials, NormalizedEmail
from .oauth import ScopeProbe, TokenExchanger
from .sasl import build_xoauth2_credential

logger = structlog.get_logger()


class MailRetriever:
    """Orchestrates one retrieval call.

    The scope probe decides the path: a token granted Graph
    ``Mail.ReadWrite`` goes through :class:`GraphMailReader`; anything else
    falls back to an XOAUTH2-authenticated :class:`ImapMailSession`.
    Exactly one reader runs per call.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._settings = settings
        self._exchanger = TokenExchanger(client, settings)
        self._probe = ScopeProbe(self._exchanger, settings)
        self._graph = GraphMailReader(client, settings)

    def _new_session(self) -> ImapMailSession:
        return ImapMailSession(self._settings)

    async def retrieve(
        self,
        credentials: Credentials,
        folder: str,
        limit: int,
    ) -> list[NormalizedEmail]:
        probe = await self._probe.probe(credentials.refresh_token, credentials.client_id)

        if probe.authorized:
            folder_id = graph_folder_id(folder)
            logger.info("mail_path_selected", path="graph", folder=folder_id, limit=limit)
            return await self._graph.list_messages(probe.access_token, folder_id, limit)

        access = await self._exchanger.exchange(credentials.refresh_token, credentials.client_id)
        credential = build_xoauth2_credential(credentials.mailbox_identity, access.token)
        imap_folder = imap_folder_name(folder)
        logger.info("mail_path_selected", path="imap", folder=imap_folder, limit=limit)
        return await self._new_session().retrieve(
            credentials.mailbox_identity,
            credential,
            imap_folder,
            limit,
        )
