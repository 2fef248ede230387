"""SASL XOAUTH2 credential encoding."""

from __future__ import annotations

import base64

from .errors import ValidationError


def xoauth2_string(identity: str, access_token: str) -> str:
    r"""Return the raw XOAUTH2 string ``user={identity}\x01auth=Bearer {token}\x01\x01``."""
    if not identity:
        raise ValidationError("XOAUTH2 credential requires a mailbox identity")
    if not access_token:
        raise ValidationError("XOAUTH2 credential requires an access token")
    return f"user={identity}\x01auth=Bearer {access_token}\x01\x01"


def build_xoauth2_credential(identity: str, access_token: str) -> str:
    """Return the base64-encoded XOAUTH2 credential for *identity*."""
    raw = xoauth2_string(identity, access_token)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")
