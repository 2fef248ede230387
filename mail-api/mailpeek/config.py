"""Mail reader configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Top-level settings for the mail reader service.

    All env vars are prefixed with ``MAILPEEK_``.
    Example: ``MAILPEEK_IMAP_HOST=outlook.office365.com``
    """

    model_config = SettingsConfigDict(env_prefix="MAILPEEK_", populate_by_name=True)

    # --- OAuth2 -------------------------------------------------------------
    token_url: str = Field(
        default="https://login.microsoftonline.com/consumers/oauth2/v2.0/token",
        description="OAuth2 token endpoint used for the refresh-token grant",
    )
    graph_probe_scope: str = Field(
        default="https://graph.microsoft.com/.default",
        description="Scope requested when probing for Graph mail access",
    )
    graph_mail_scope: str = Field(
        default="https://graph.microsoft.com/Mail.ReadWrite",
        description="Granted scope that enables the Graph mail path",
    )

    # --- Microsoft Graph ----------------------------------------------------
    graph_base_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        description="Microsoft Graph API base URL",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for token endpoint and Graph requests",
    )

    # --- IMAP ---------------------------------------------------------------
    imap_host: str = Field(
        default="outlook.office365.com",
        description="IMAP server hostname for the fallback path",
    )
    imap_port: int = Field(default=993, description="IMAP server port (implicit TLS)")
    imap_verify_tls: bool = Field(
        default=True,
        description="Verify the IMAP server certificate",
    )

    # --- Request handling ---------------------------------------------------
    default_limit: int = Field(
        default=10,
        description="Number of messages returned when the caller gives no usable limit",
    )
    password: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("MAILPEEK_PASSWORD", "PASSWORD"),
        description="Shared secret callers must supply; gate is open when unset",
    )

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )
