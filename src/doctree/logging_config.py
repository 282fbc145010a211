"""Structured logging configuration for doctree.

Provides JSON-formatted logs by default and human-readable text on request.
A contextvars-based entity scope ("event:42") is included in every log
record while a FolderBrowser operation is running.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Iterable, Optional


# Shared contextvar, set by FolderBrowser around each operation, read by the formatter.
entity_scope_var: contextvars.ContextVar[str] = contextvars.ContextVar("entity_scope", default="")


class _JsonFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    Merges any ``extra`` fields from the record into the top-level object
    so callers can do ``logger.info("msg", extra={"folder_id": 3})`` and
    get ``{"folder_id": 3}`` alongside the standard fields.
    """

    # Keys that belong to the LogRecord itself and should not leak into output.
    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        scope = entity_scope_var.get("")
        if scope:
            payload["entity_scope"] = scope

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


# The only secret this client holds is its API token, sent as a bearer header.
_BEARER = re.compile(r'(?i)(bearer\s+)\S+')

_REDACTED = "***REDACTED***"


class _SecretFilter(logging.Filter):
    """Redact bearer headers and the configured token from log messages."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(record.getMessage())
        record.args = None
        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)
        return True

    def _redact(self, text: str) -> str:
        text = _BEARER.sub(lambda m: m.group(1) + _REDACTED, text)
        for secret in self._secrets:
            text = text.replace(secret, _REDACTED)
        return text


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    secrets: Iterable[str] = (),
) -> None:
    """Configure application-wide logging.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Defaults to INFO.
        log_format: ``"json"`` for structured output, ``"text"`` for human-readable.
                    Defaults to ``"json"``.
        secrets: Literal values to redact, normally the API token.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    # MCP stdio transport owns stdout; logs go to stderr.
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(_SecretFilter(secrets))

    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Reduce noise from the HTTP stack.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured", extra={"level": level, "format": fmt})
