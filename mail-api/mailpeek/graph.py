"""Microsoft Graph mail listing for accounts granted Mail.ReadWrite."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
import structlog

from .config import Settings
from .models import NormalizedEmail, most_recent_first

logger = structlog.get_logger()


class GraphMailReader:
    """Lists the newest messages of one mail folder over the Graph REST API.

    Failures are soft: any HTTP or decoding error is logged and the
    folder is reported as empty.  The scope probe has already vouched for
    the token, so a failure here is treated as transient.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def list_messages(
        self,
        access_token: str,
        folder_id: str,
        limit: int,
    ) -> list[NormalizedEmail]:
        if not access_token:
            return []

        url = f"{self._settings.graph_base_url}/me/mailFolders/{folder_id}/messages"
        try:
            response = await self._client.get(
                url,
                params={"$top": str(limit), "$orderby": "receivedDateTime desc"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            items = response.json().get("value") or []
            if not isinstance(items, list):
                raise ValueError(f"expected a message list, got {type(items).__name__}")
            # pydantic.ValidationError is a ValueError
            emails = [to_normalized(item) for item in items if isinstance(item, dict)]
        except httpx.HTTPStatusError as exc:
            logger.error(
                "graph_fetch_failed",
                folder=folder_id,
                status_code=exc.response.status_code,
                error=exc.response.text,
            )
            return []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.error("graph_fetch_failed", folder=folder_id, error=str(exc))
            return []

        logger.info("graph_fetch_complete", folder=folder_id, fetched=len(emails))
        return most_recent_first(emails, limit)


def to_normalized(item: dict[str, Any]) -> NormalizedEmail:
    """Map one Graph ``message`` resource to a :class:`NormalizedEmail`."""
    sender = (item.get("from") or {}).get("emailAddress") or {}
    body = item.get("body") or {}
    return NormalizedEmail(
        sender=sender.get("address") or "",
        subject=item.get("subject"),
        text_body=item.get("bodyPreview"),
        html_body=body.get("content"),
        timestamp=_parse_timestamp(item.get("receivedDateTime") or item.get("createdDateTime")),
    )


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
