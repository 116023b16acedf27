"""Logging configuration.

Configures Python logging to emit either JSON-formatted entries (for
scheduled, unattended runs) or plain text (interactive runs). Workflow
fields are attached contextually through ``extra``: wallet, workflow,
attempt, endpoint, proxy_used for upload attempts; error_reason for
failures.

SECURITY: Never logs private keys, mnemonics, or proxy passwords.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone


# Patterns that should be redacted from log output
_SENSITIVE_PATTERNS = re.compile(
    r"(suiprivkey1[02-9ac-hj-np-z]+"
    r"|\b(?:0x)?[0-9a-fA-F]{64}\b(?![0-9a-fA-F])"
    r"|(?<=://)[^/@\s:]+:[^/@\s]+(?=@)"
    r"|(?:private.key|mnemonic|secret|password|passphrase)[\s]*[=:]\s*\S+)",
    re.IGNORECASE,
)

# Sui addresses and object ids share the shape of a hex private key
_ADDRESS_PATTERN = re.compile(r"\b0x[0-9a-fA-F]{64}\b")

# Identifiers that are known to be public and may be logged verbatim
_public_ids: set[str] = set()

_CONTEXT_FIELDS = (
    "wallet",
    "workflow",
    "attempt",
    "endpoint",
    "proxy_used",
    "retry_attempts",
    "duration_ms",
)


def register_public_ids(*values: str | None) -> None:
    """Mark derived addresses and ledger object ids as safe to log."""
    _public_ids.update(value.lower() for value in values if value)


def sanitize(text: str) -> str:
    """Remove secrets from log text, keeping registered public ids intact."""
    addresses: list[str] = []

    def _keep(match: re.Match[str]) -> str:
        if match.group(0).lower() not in _public_ids:
            return match.group(0)
        addresses.append(match.group(0))
        return f"\x00{len(addresses) - 1}\x00"

    masked = _ADDRESS_PATTERN.sub(_keep, text)
    masked = _SENSITIVE_PATTERNS.sub("[REDACTED]", masked)
    return re.sub(r"\x00(\d+)\x00", lambda m: addresses[int(m.group(1))], masked)


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON with structured fields.

    Each entry contains at minimum: timestamp, level, logger, message.
    Additional fields can be attached via the ``extra`` dict on log calls.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize(record.getMessage()),
        }

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)

        if hasattr(record, "error_reason"):
            entry["error_reason"] = sanitize(str(getattr(record, "error_reason")))

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = sanitize(self.formatException(record.exc_info))

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain text formatter that applies the same redaction as JSON output."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        return sanitize(super().format(record))


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    json_format:
        Emit one JSON object per line instead of plain text.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_format else TextFormatter())
    root.addHandler(handler)

    # httpx logs every request at INFO, which drowns the run summary
    logging.getLogger("httpx").setLevel(logging.WARNING)
