"""Normalises raw generation-service failures into ``ClassifiedError`` records.

Raw failures arrive in several shapes: client-library HTTP errors exposing a
status (``status``, ``status_code`` or ``response.status``) with the message
nested under ``data.error.message``; network or domain errors exposing a
string ``code``; plain Python network exceptions; or plain mappings with the
same keys. Lookup is exact and case-sensitive, in table order
HTTP -> network -> validation, with a non-retryable UNKNOWN fallback.
"""
from __future__ import annotations

import asyncio
import socket
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import ClassifiedError, ErrorCode, ErrorKind


@dataclass(frozen=True)
class ErrorEntry:
    retryable: bool
    user_message: str
    suggested_action: Optional[str] = None
    actionable: bool = False


HTTP_ERRORS: Dict[int, ErrorEntry] = {
    400: ErrorEntry(
        retryable=False,
        user_message="The request could not be processed. Please check your land dimensions and try again.",
        suggested_action="Verify that your land parcel dimensions are valid and within acceptable ranges.",
        actionable=True,
    ),
    401: ErrorEntry(
        retryable=False,
        user_message="Your AI API key is invalid or missing.",
        suggested_action="Please add a valid API key in Settings > AI Configuration.",
        actionable=True,
    ),
    403: ErrorEntry(
        retryable=False,
        user_message="Access to the AI service was denied.",
        suggested_action="Please check your API key permissions or contact support.",
        actionable=True,
    ),
    429: ErrorEntry(
        retryable=True,
        user_message="Too many AI requests. Please wait a moment and try again.",
        suggested_action="Wait 1 minute before making additional requests.",
        actionable=True,
    ),
    500: ErrorEntry(
        retryable=True,
        user_message="The AI service encountered an internal error.",
        suggested_action="We'll retry automatically. If the issue persists, please try again later.",
    ),
    503: ErrorEntry(
        retryable=True,
        user_message="The AI service is temporarily unavailable.",
        suggested_action="We'll retry automatically. The service should be back soon.",
    ),
}

NETWORK_ERRORS: Dict[str, ErrorEntry] = {
    "ETIMEDOUT": ErrorEntry(
        retryable=True,
        user_message="The AI request timed out.",
        suggested_action="This may happen with complex calculations. We'll retry automatically.",
    ),
    "ECONNRESET": ErrorEntry(
        retryable=True,
        user_message="Connection to the AI service was lost.",
        suggested_action="We'll retry automatically.",
    ),
    "ENOTFOUND": ErrorEntry(
        retryable=False,
        user_message="Cannot reach the AI service.",
        suggested_action="Please check your internet connection and try again.",
        actionable=True,
    ),
    "ECONNREFUSED": ErrorEntry(
        retryable=False,
        user_message="Connection to the AI service was refused.",
        suggested_action="Please check your internet connection or firewall settings.",
        actionable=True,
    ),
}

# The generator is expected to self-correct on a fresh attempt, except when the
# land itself is too small.
VALIDATION_ERRORS: Dict[str, ErrorEntry] = {
    "INVALID_PLAN": ErrorEntry(
        retryable=True,
        user_message="The AI generated an invalid subdivision plan.",
        suggested_action="Trying again with adjusted parameters...",
    ),
    "LOTS_BELOW_MINIMUM": ErrorEntry(
        retryable=True,
        user_message="Some lots are below the 90 sqm minimum requirement.",
        suggested_action="Regenerating plan with stricter constraints...",
    ),
    "AREA_MISMATCH": ErrorEntry(
        retryable=True,
        user_message="The planned area exceeds available land.",
        suggested_action="Regenerating plan with corrected calculations...",
    ),
    "OVERLAPPING_LOTS": ErrorEntry(
        retryable=True,
        user_message="Some lots overlap in the generated plan.",
        suggested_action="Regenerating plan with proper spacing...",
    ),
    "NO_VIABLE_LOTS": ErrorEntry(
        retryable=False,
        user_message="Your land is too small for viable micro-villas.",
        suggested_action="Minimum 1000 sqm recommended for subdivision planning.",
        actionable=True,
    ),
}

UNKNOWN_CODE = "UNKNOWN"
UNKNOWN_ERROR = ErrorEntry(
    retryable=False,
    user_message="An unexpected error occurred.",
    suggested_action="Please try again or contact support if the issue persists.",
    actionable=True,
)


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _path(obj: Any, *keys: str) -> Any:
    for key in keys:
        obj = _get(obj, key)
        if obj is None:
            return None
    return obj


def _as_status(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _python_network_symbol(raw: Any) -> str | None:
    if isinstance(raw, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(raw, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(raw, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(raw, (TimeoutError, asyncio.TimeoutError)):
        return "ETIMEDOUT"
    return None


def extract_status(raw: Any) -> int | None:
    for candidate in (
        _get(raw, "status"),
        _get(raw, "status_code"),
        _path(raw, "response", "status"),
        _path(raw, "response", "status_code"),
        _get(raw, "code"),
    ):
        status = _as_status(candidate)
        if status is not None:
            return status
    return None


def extract_symbol(raw: Any) -> str | None:
    code = _get(raw, "code")
    if isinstance(code, str) and code:
        return code
    return _python_network_symbol(raw)


def extract_message(raw: Any) -> str:
    for candidate in (
        _path(raw, "data", "error", "message"),
        _path(raw, "response", "data", "error", "message"),
        _get(raw, "message"),
    ):
        if isinstance(candidate, str) and candidate:
            return candidate
    if isinstance(raw, BaseException):
        text = str(raw)
        return text or type(raw).__name__
    if isinstance(raw, Mapping):
        return "Unknown error"
    return str(raw) if raw is not None else "Unknown error"


def _build(code: ErrorCode, kind: ErrorKind, entry: ErrorEntry, raw_message: str) -> ClassifiedError:
    return ClassifiedError(
        code=code,
        raw_message=raw_message,
        retryable=entry.retryable,
        user_message=entry.user_message,
        kind=kind,
        suggested_action=entry.suggested_action,
        actionable=entry.actionable,
    )


def classify_error(raw: Any) -> ClassifiedError:
    """Maps any raw failure to exactly one ``ClassifiedError``."""
    if isinstance(raw, ClassifiedError):
        return raw

    raw_message = extract_message(raw)
    status = extract_status(raw)
    symbol = extract_symbol(raw)

    if status is not None and status in HTTP_ERRORS:
        return _build(status, "http", HTTP_ERRORS[status], raw_message)
    if symbol is not None and symbol in NETWORK_ERRORS:
        return _build(symbol, "network", NETWORK_ERRORS[symbol], raw_message)
    if symbol is not None and symbol in VALIDATION_ERRORS:
        return _build(symbol, "validation", VALIDATION_ERRORS[symbol], raw_message)

    code: ErrorCode = status if status is not None else (symbol or UNKNOWN_CODE)
    return _build(code, "unknown", UNKNOWN_ERROR, raw_message)


def user_message_for(code: ErrorCode) -> str:
    if isinstance(code, int) and not isinstance(code, bool):
        entry = HTTP_ERRORS.get(code)
    else:
        entry = NETWORK_ERRORS.get(code) or VALIDATION_ERRORS.get(code)
    return (entry or UNKNOWN_ERROR).user_message
