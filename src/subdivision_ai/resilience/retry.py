from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Generic, Optional, TypeVar, Union

from .classifier import classify_error
from .errors import (
    ClassifiedError,
    ErrorCode,
    GenerationFailedError,
    OperationCancelledError,
)
from .registry import Admission, RateLimitExceeded

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_CODES: FrozenSet[ErrorCode] = frozenset({429, 500, 503, "ETIMEDOUT", "ECONNRESET"})


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3  # attempts after the first one
    base_delay_s: float = 1.0
    max_delay_s: float = 10.0
    retryable_codes: FrozenSet[ErrorCode] = DEFAULT_RETRYABLE_CODES
    jitter: float = 0.25

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_s < 0 or self.max_delay_s < 0:
            raise ValueError("delays must be >= 0")
        if self.jitter < 0:
            raise ValueError("jitter must be >= 0")
        object.__setattr__(self, "retryable_codes", frozenset(self.retryable_codes))

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True)
class RetryAttempt:
    attempt: int
    error: ClassifiedError
    delay_s: float


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T
    attempts: int

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failed:
    error: ClassifiedError
    attempts: int

    @property
    def user_message(self) -> str:
        return self.error.user_message

    def unwrap(self):
        raise GenerationFailedError(self.error, attempts=self.attempts)


@dataclass(frozen=True)
class Cancelled:
    attempts: int

    def unwrap(self):
        raise OperationCancelledError(attempts=self.attempts)


@dataclass(frozen=True)
class RateLimited:
    rejection: RateLimitExceeded
    attempts: int

    def unwrap(self):
        raise self.rejection.to_exception()


Outcome = Union[Succeeded[T], Failed, Cancelled, RateLimited]
RetryObserver = Callable[[RetryAttempt], Any]


def compute_backoff(attempt: int, policy: RetryPolicy, rng: random.Random) -> float:
    # exponential backoff with symmetric jitter around the capped delay
    delay = min(policy.base_delay_s * (2 ** (attempt - 1)), policy.max_delay_s)
    jitter = delay * policy.jitter * (rng.random() - 0.5)
    return max(0.0, delay + jitter)


def should_retry(error: ClassifiedError, attempt: int, policy: RetryPolicy) -> bool:
    if attempt >= policy.max_attempts:
        return False
    return error.retryable and error.code in policy.retryable_codes


@dataclass
class RetryExecutor:
    """
    Runs one operation to completion or exhaustion under a ``RetryPolicy``.

    Holds no per-call state, so a single executor serves concurrent callers.
    ``run`` returns an explicit outcome instead of raising; ``unwrap()`` on the
    outcome converts failures into exceptions for callers that prefer them.
    """

    policy: RetryPolicy = DEFAULT_RETRY_POLICY
    rng: random.Random = field(default_factory=random.Random)
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    classifier: Callable[[Any], ClassifiedError] = classify_error

    async def _pause(self, delay_s: float, cancel: Optional[asyncio.Event]) -> bool:
        """Suspends for ``delay_s``; returns True when ``cancel`` fired first."""
        if cancel is None:
            await self.sleep(delay_s)
            return False
        if cancel.is_set():
            return True
        sleeper = asyncio.ensure_future(self.sleep(delay_s))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        return cancel.is_set()

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        on_retry: Optional[RetryObserver] = None,
        *,
        admission: Optional[Callable[[], Admission]] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Outcome:
        policy = policy or self.policy
        last_error: ClassifiedError | None = None

        for attempt in range(1, policy.max_attempts + 1):
            if cancel is not None and cancel.is_set():
                return Cancelled(attempts=attempt - 1)
            if admission is not None:
                decision = admission()
                if isinstance(decision, RateLimitExceeded):
                    return RateLimited(rejection=decision, attempts=attempt - 1)

            try:
                value = await operation()
            except OperationCancelledError:
                return Cancelled(attempts=attempt)
            except Exception as exc:
                if cancel is not None and cancel.is_set():
                    return Cancelled(attempts=attempt)
                error = self.classifier(exc)
                last_error = error
            else:
                return Succeeded(value=value, attempts=attempt)

            if not should_retry(error, attempt, policy):
                logger.warning(
                    "generation_failed",
                    extra={
                        "event": "generation_failed",
                        "attempt": attempt,
                        "code": error.code,
                        "retryable": error.retryable,
                        "raw_message": error.raw_message,
                    },
                )
                return Failed(error=error, attempts=attempt)

            delay_s = compute_backoff(attempt, policy, self.rng)
            logger.warning(
                "generation_retry_scheduled",
                extra={
                    "event": "generation_retry_scheduled",
                    "attempt": attempt,
                    "code": error.code,
                    "raw_message": error.raw_message,
                    "delay_s": round(delay_s, 3),
                },
            )
            if on_retry is not None:
                on_retry(RetryAttempt(attempt=attempt, error=error, delay_s=delay_s))
            if await self._pause(delay_s, cancel):
                return Cancelled(attempts=attempt)

        # unreachable: the last attempt always returns above
        assert last_error is not None
        return Failed(error=last_error, attempts=policy.max_attempts)
