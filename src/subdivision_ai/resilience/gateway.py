from __future__ import annotations

import asyncio
from functools import partial
import random
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, TypeVar

from subdivision_ai.telemetry.noop import NoOpTelemetry

from .registry import Admission, RateLimitExceeded, RateLimiterRegistry
from .retry import (
    Cancelled,
    Failed,
    Outcome,
    RateLimited,
    RetryAttempt,
    RetryExecutor,
    RetryObserver,
    RetryPolicy,
    Succeeded,
)
from .token_bucket import BucketStatus

if TYPE_CHECKING:
    from subdivision_ai.config import ResilienceSettings

T = TypeVar("T")


class ResilienceGateway:
    """
    Entry point for every call to the external generation service.

    Built once per process and handed to call sites; it owns no global state.
    When ``resource`` is given, admission against that bucket is checked
    before each attempt and a rejection ends the call without running the
    operation.
    """

    def __init__(
        self,
        registry: RateLimiterRegistry,
        executor: Optional[RetryExecutor] = None,
        *,
        telemetry: Optional[Any] = None,
    ):
        self.registry = registry
        self.executor = executor or RetryExecutor()
        self._telemetry = telemetry or NoOpTelemetry()

    @classmethod
    def from_settings(
        cls,
        settings: ResilienceSettings,
        *,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        telemetry: Optional[Any] = None,
    ) -> "ResilienceGateway":
        registry = RateLimiterRegistry(settings.bucket_configs(), clock=clock)
        executor = RetryExecutor(
            policy=settings.retry_policy(),
            rng=rng or random.Random(),
            sleep=sleep,
        )
        return cls(registry, executor, telemetry=telemetry)

    def _emit(self, name: str, payload: dict) -> None:
        if hasattr(self._telemetry, "event"):
            self._telemetry.event(name, payload)

    async def run_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        on_retry: Optional[RetryObserver] = None,
        *,
        resource: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Outcome:
        admission = None
        if resource is not None:
            self.registry.bucket(resource)  # fail fast on unknown names
            admission = partial(self.registry.check_and_consume, resource)

        def _observe(attempt: RetryAttempt) -> None:
            self._emit(
                "retry_scheduled",
                {
                    "resource": resource,
                    "attempt": attempt.attempt,
                    "code": attempt.error.code,
                    "delay_s": round(attempt.delay_s, 3),
                },
            )
            if on_retry is not None:
                on_retry(attempt)

        start = time.perf_counter()
        outcome = await self.executor.run(
            operation,
            policy,
            _observe,
            admission=admission,
            cancel=cancel,
        )
        latency_ms = int((time.perf_counter() - start) * 1000)

        payload: Dict[str, Any] = {
            "resource": resource,
            "attempts": outcome.attempts,
            "latency_ms": latency_ms,
        }
        if isinstance(outcome, Succeeded):
            self._emit("call_succeeded", payload)
        elif isinstance(outcome, Failed):
            payload.update(code=outcome.error.code, kind=outcome.error.kind, severity=outcome.error.severity)
            self._emit("call_failed", payload)
        elif isinstance(outcome, Cancelled):
            self._emit("call_cancelled", payload)
        elif isinstance(outcome, RateLimited):
            payload.update(wait_time_s=round(outcome.rejection.wait_time_s, 3))
            self._emit("rate_limited", payload)
        return outcome

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        on_retry: Optional[RetryObserver] = None,
        *,
        resource: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> T:
        outcome = await self.run_with_retry(operation, policy, on_retry, resource=resource, cancel=cancel)
        return outcome.unwrap()

    def check_rate_limit(self, resource: str) -> Admission:
        return self.registry.check_and_consume(resource)

    def require_rate_limit(self, resource: str) -> None:
        decision = self.registry.check_and_consume(resource)
        if isinstance(decision, RateLimitExceeded):
            raise decision.to_exception()

    def get_rate_limit_status(self) -> Dict[str, BucketStatus]:
        return self.registry.status_all()

    def reset_rate_limits(self, resource: Optional[str] = None) -> None:
        self.registry.reset(resource)
