from __future__ import annotations

from functools import lru_cache

from subdivision_ai.config import get_settings
from subdivision_ai.resilience.gateway import ResilienceGateway
from subdivision_ai.telemetry.logging_sink import LoggingTelemetry


@lru_cache
def get_telemetry() -> LoggingTelemetry:
    return LoggingTelemetry()


@lru_cache
def get_gateway() -> ResilienceGateway:
    # one gateway per process: every caller shares the same buckets
    return ResilienceGateway.from_settings(get_settings(), telemetry=get_telemetry())
