"""FastAPI dependency-injection helpers."""

from __future__ import annotations

import json
from typing import Any

import httpx
from fastapi import Request

from .config import Settings
from .retriever import MailRetriever


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_retriever(request: Request) -> MailRetriever:
    return MailRetriever(get_http_client(request), get_settings(request))


async def get_params(request: Request) -> dict[str, Any]:
    """Caller parameters: query string on GET, request body on POST.

    The body may be a JSON object or an urlencoded form; anything else
    yields no parameters.
    """
    if request.method != "POST":
        return dict(request.query_params)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}
