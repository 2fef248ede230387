"""OAuth2 refresh-token grant and Graph scope probing."""

from __future__ import annotations

import json

import httpx
import structlog

from .config import Settings
from .errors import AuthError, ProtocolError
from .models import AccessToken, ScopeProbeResult

logger = structlog.get_logger()


class TokenExchanger:
    """Exchanges a refresh token for an access token.

    A single failed exchange is fatal to the call; there is no retry.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def exchange(
        self,
        refresh_token: str,
        client_id: str,
        scope: str | None = None,
    ) -> AccessToken:
        """POST a ``refresh_token`` grant to the token endpoint.

        Raises :class:`AuthError` on a non-2xx answer or transport failure
        and :class:`ProtocolError` when the body is not a token payload.
        """
        form = {
            "client_id": client_id,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        if scope:
            form["scope"] = scope

        try:
            response = await self._client.post(self._settings.token_url, data=form)
        except httpx.HTTPError as exc:
            raise AuthError(f"Token endpoint request failed: {exc}") from exc

        body = response.text
        if not response.is_success:
            logger.warning("token_exchange_rejected", status_code=response.status_code)
            raise AuthError(
                f"HTTP error! status: {response.status_code}, response: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"Failed to parse JSON: {exc}, response: {body}", body=body) from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise ProtocolError(f"Token response has no access_token, response: {body}", body=body)

        granted = payload.get("scope")
        granted_scope = frozenset(granted.split()) if isinstance(granted, str) else None

        logger.debug("token_exchanged", scope_requested=scope is not None)
        return AccessToken(token=token, granted_scope=granted_scope)


class ScopeProbe:
    """Decides whether the Graph mail path is usable for a refresh token."""

    def __init__(self, exchanger: TokenExchanger, settings: Settings) -> None:
        self._exchanger = exchanger
        self._settings = settings

    async def probe(self, refresh_token: str, client_id: str) -> ScopeProbeResult:
        access = await self._exchanger.exchange(
            refresh_token,
            client_id,
            scope=self._settings.graph_probe_scope,
        )
        authorized = access.has_scope(self._settings.graph_mail_scope)
        logger.info("scope_probed", graph_authorized=authorized)
        return ScopeProbeResult(access_token=access.token, authorized=authorized)
