from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Union

from .errors import RateLimitExceededError, UnknownResourceError
from .token_bucket import BucketStatus, TokenBucket

TEXT_GENERATION = "text-generation"
IMAGE_GENERATION = "image-generation"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketConfig:
    name: str
    capacity: int
    refill_per_minute: float
    refill_interval_s: float = 1.0
    label: Optional[str] = None

    @property
    def refill_rate(self) -> float:
        return self.refill_per_minute / 60

    @property
    def display_name(self) -> str:
        return self.label or self.name.replace("-", " ").capitalize()


# free-tier quotas with a safety margin
DEFAULT_BUCKETS = (
    BucketConfig(name=TEXT_GENERATION, capacity=10, refill_per_minute=10, label="Text generation"),
    BucketConfig(name=IMAGE_GENERATION, capacity=5, refill_per_minute=5, label="Image generation"),
)


@dataclass(frozen=True)
class Admitted:
    resource: str
    ok: bool = True


@dataclass(frozen=True)
class RateLimitExceeded:
    resource: str
    wait_time_s: float
    message: str
    ok: bool = False

    def to_exception(self) -> RateLimitExceededError:
        return RateLimitExceededError(self.message, resource=self.resource, wait_time_s=self.wait_time_s)


Admission = Union[Admitted, RateLimitExceeded]


class RateLimiterRegistry:
    """One token bucket per named external resource, kept for the process lifetime."""

    def __init__(
        self,
        configs: Iterable[BucketConfig] = DEFAULT_BUCKETS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._configs: Dict[str, BucketConfig] = {}
        self._buckets: Dict[str, TokenBucket] = {}
        for cfg in configs:
            self._configs[cfg.name] = cfg
            self._buckets[cfg.name] = TokenBucket(
                capacity=cfg.capacity,
                refill_rate=cfg.refill_rate,
                refill_interval_s=cfg.refill_interval_s,
                clock=clock,
            )

    def names(self) -> list[str]:
        return list(self._buckets)

    def bucket(self, resource: str) -> TokenBucket:
        try:
            return self._buckets[resource]
        except KeyError:
            raise UnknownResourceError(resource) from None

    def check_and_consume(self, resource: str) -> Admission:
        bucket = self.bucket(resource)
        if bucket.try_consume(1):
            logger.debug("rate_limit_admitted", extra={"event": "rate_limit_admitted", "resource": resource})
            return Admitted(resource=resource)

        wait_s = bucket.wait_time(1)
        label = self._configs[resource].display_name
        message = f"{label} rate limit exceeded. Please wait {math.ceil(wait_s)} seconds."
        logger.info(
            "rate_limit_exceeded",
            extra={"event": "rate_limit_exceeded", "resource": resource, "wait_time_s": round(wait_s, 3)},
        )
        return RateLimitExceeded(resource=resource, wait_time_s=wait_s, message=message)

    def status(self, resource: str) -> BucketStatus:
        return self.bucket(resource).snapshot()

    def status_all(self) -> Dict[str, BucketStatus]:
        return {name: bucket.snapshot() for name, bucket in self._buckets.items()}

    def reset(self, resource: str | None = None) -> None:
        targets = [self.bucket(resource)] if resource is not None else list(self._buckets.values())
        for bucket in targets:
            bucket.reset()
