"""Latest-mail endpoint: newest messages of one mailbox folder."""

from __future__ import annotations

import re
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mailpeek.auth import require_password
from mailpeek.config import Settings
from mailpeek.deps import get_params, get_retriever, get_settings
from mailpeek.errors import ValidationError
from mailpeek.models import Credentials
from mailpeek.retriever import MailRetriever

logger = structlog.get_logger()
router = APIRouter(prefix="/api", tags=["mail"], dependencies=[Depends(require_password)])

REQUIRED_PARAMS = ("refresh_token", "client_id", "email", "mailbox")
MISSING_PARAMS_MESSAGE = "Missing required parameters: refresh_token, client_id, email, or mailbox"

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def parse_limit(value: object, default: int) -> int:
    """Coerce *value* to a positive message count.

    Strings are read up to the first non-digit (``"5abc"`` is 5).
    Non-numeric, zero and negative values give *default*.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value)
    elif isinstance(value, str) and (match := _LEADING_INT.match(value)):
        number = int(match.group())
    else:
        return default
    return number if number > 0 else default


def credentials_from(params: dict[str, Any]) -> Credentials:
    """Validate required caller parameters and build :class:`Credentials`."""
    if any(not params.get(name) for name in REQUIRED_PARAMS):
        raise ValidationError(MISSING_PARAMS_MESSAGE)
    return Credentials(
        refresh_token=str(params["refresh_token"]),
        client_id=str(params["client_id"]),
        mailbox_identity=str(params["email"]),
    )


@router.api_route("/mail-latest", methods=["GET", "POST"])
@router.api_route("/mail-latest-ten", methods=["GET", "POST"], include_in_schema=False)
async def latest_mail(
    params: Annotated[dict[str, Any], Depends(get_params)],
    settings: Annotated[Settings, Depends(get_settings)],
    retriever: Annotated[MailRetriever, Depends(get_retriever)],
) -> JSONResponse:
    """Return the newest ``limit`` messages of ``mailbox``, most recent first."""
    credentials = credentials_from(params)
    mailbox = str(params["mailbox"])
    limit = parse_limit(params.get("limit"), settings.default_limit)

    emails = await retriever.retrieve(credentials, mailbox, limit)
    logger.info("latest_mail_served", mailbox=mailbox, limit=limit, returned=len(emails))
    return JSONResponse([email.to_wire() for email in emails])
