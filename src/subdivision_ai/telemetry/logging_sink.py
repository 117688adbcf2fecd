from __future__ import annotations

import logging
from typing import Any, Dict

_SENSITIVE = ("api_key", "apikey", "secret", "token", "password", "authorization")


def _scrub(payload: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in payload.items():
        if any(marker in str(key).lower() for marker in _SENSITIVE):
            cleaned[key] = "***"
        else:
            cleaned[key] = value
    return cleaned


class LoggingTelemetry:
    """Writes telemetry events to the standard logger as structured records."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("subdivision_ai.telemetry")

    def event(self, name: str, payload: dict):
        self._logger.info(name, extra={"event": name, "payload": _scrub(payload)})

    def error(self, trace_id: str | None, exc: Exception):
        self._logger.error(
            "telemetry_error",
            extra={"event": "telemetry_error", "trace_id": trace_id, "error_type": type(exc).__name__},
        )
