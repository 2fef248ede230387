"""Tests for mailpeek.logging."""

from __future__ import annotations

import json
import logging

import structlog

from mailpeek.logging import redact_secrets, setup_logging


class TestSetupLogging:
    def test_json_mode(self):
        setup_logging(json=True, level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_console_mode(self):
        setup_logging(json=False, level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_level_case_insensitive(self):
        setup_logging(level="warning")
        assert logging.getLogger().level == logging.WARNING

    def test_replaces_existing_handlers(self):
        root = logging.getLogger()
        root.addHandler(logging.StreamHandler())
        root.addHandler(logging.StreamHandler())
        setup_logging()
        assert len(root.handlers) == 1

    def test_httpx_request_logs_quieted(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_structlog_produces_output(self):
        setup_logging(json=True, level="DEBUG")
        logger = structlog.get_logger("test_logger")
        logger.info("test_event", key="value")


class TestRedactSecrets:
    def test_masks_token_keys(self):
        event = {"event": "x", "access_token": "at", "refresh_token": "rt", "password": "pw"}
        out = redact_secrets(None, "info", event)
        assert out["access_token"] == "***"
        assert out["refresh_token"] == "***"
        assert out["password"] == "***"

    def test_leaves_other_keys(self):
        out = redact_secrets(None, "info", {"event": "x", "folder": "INBOX"})
        assert out == {"event": "x", "folder": "INBOX"}

    def test_stdlib_records_get_json_fields(self, capsys):
        setup_logging(json=True, level="INFO")
        logging.getLogger("thirdparty.lib").info("server started")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "server started"
        assert record["level"] == "info"
        assert record["logger"] == "thirdparty.lib"
        assert "timestamp" in record
