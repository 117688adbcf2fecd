from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, List, Tuple

from dotenv import load_dotenv

from subdivision_ai.resilience.errors import ErrorCode
from subdivision_ai.resilience.registry import IMAGE_GENERATION, TEXT_GENERATION, BucketConfig
from subdivision_ai.resilience.retry import DEFAULT_RETRYABLE_CODES, RetryPolicy


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_codes(value: str) -> FrozenSet[ErrorCode]:
    # numeric entries are HTTP statuses, the rest are symbols matched verbatim
    return frozenset(int(item) if item.isdigit() else item for item in _split_csv(value))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _env_log_level(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    level = raw.strip().lower()
    if level not in _LOG_LEVELS:
        raise ValueError(f"{name} must be one of {', '.join(_LOG_LEVELS)}, got {raw!r}")
    return level


@dataclass(frozen=True)
class ResilienceSettings:
    max_retries: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 10.0
    jitter: float = 0.25
    retryable_codes: FrozenSet[ErrorCode] = DEFAULT_RETRYABLE_CODES
    text_capacity: int = 10
    text_refill_per_minute: float = 10
    image_capacity: int = 5
    image_refill_per_minute: float = 5
    refill_interval_s: float = 1.0
    log_level: str = "info"
    extra_buckets: Tuple[BucketConfig, ...] = field(default_factory=tuple)

    @classmethod
    def from_env(cls) -> "ResilienceSettings":
        load_dotenv()
        codes = os.getenv("RETRY_RETRYABLE_CODES", "")
        return cls(
            max_retries=_env_int("RETRY_MAX_RETRIES", 3),
            base_delay_s=_env_float("RETRY_BASE_DELAY_S", 1.0),
            max_delay_s=_env_float("RETRY_MAX_DELAY_S", 10.0),
            jitter=_env_float("RETRY_JITTER", 0.25),
            retryable_codes=_parse_codes(codes) if codes.strip() else DEFAULT_RETRYABLE_CODES,
            text_capacity=_env_int("RATE_LIMIT_TEXT_CAPACITY", 10),
            text_refill_per_minute=_env_float("RATE_LIMIT_TEXT_REFILL_PER_MINUTE", 10),
            image_capacity=_env_int("RATE_LIMIT_IMAGE_CAPACITY", 5),
            image_refill_per_minute=_env_float("RATE_LIMIT_IMAGE_REFILL_PER_MINUTE", 5),
            refill_interval_s=_env_float("RATE_LIMIT_REFILL_INTERVAL_S", 1.0),
            log_level=_env_log_level("API_LOG_LEVEL", "info"),
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_s=self.base_delay_s,
            max_delay_s=self.max_delay_s,
            retryable_codes=self.retryable_codes,
            jitter=self.jitter,
        )

    def bucket_configs(self) -> List[BucketConfig]:
        return [
            BucketConfig(
                name=TEXT_GENERATION,
                capacity=self.text_capacity,
                refill_per_minute=self.text_refill_per_minute,
                refill_interval_s=self.refill_interval_s,
                label="Text generation",
            ),
            BucketConfig(
                name=IMAGE_GENERATION,
                capacity=self.image_capacity,
                refill_per_minute=self.image_refill_per_minute,
                refill_interval_s=self.refill_interval_s,
                label="Image generation",
            ),
            *self.extra_buckets,
        ]


@lru_cache
def get_settings() -> ResilienceSettings:
    return ResilienceSettings.from_env()
