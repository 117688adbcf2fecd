import sys
from pathlib import Path

# чтобы видеть src/
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import asyncio
from typing import Any, Dict, List

import pytest

from subdivision_ai.resilience.registry import BucketConfig, RateLimiterRegistry
from subdivision_ai.resilience.retry import RetryExecutor


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stands in for asyncio.sleep: records the delay and yields once."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class FixedRandom:
    """random.Random look-alike returning a constant, for exact jitter checks."""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


class ScriptedOperation:
    """Async zero-arg operation that raises or returns items of ``script`` in order."""

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        item = self.script.pop(0) if self.script else "ok"
        if isinstance(item, BaseException):
            raise item
        return item


class HTTPFailure(Exception):
    """Shape produced by the generation client for HTTP failures."""

    def __init__(self, status: int, message: str = "upstream error"):
        super().__init__(message)
        self.status = status
        self.data = {"error": {"message": message}}


class CodedFailure(Exception):
    """Shape produced for network and validation failures: ``{code, message}``."""

    def __init__(self, code: str, message: str = "failure"):
        super().__init__(message)
        self.code = code
        self.message = message


class RecordingTelemetry:
    def __init__(self):
        self.events: List[Dict[str, Any]] = []
        self.errors: List[tuple] = []

    def event(self, name: str, payload: dict):
        self.events.append({"name": name, **payload})

    def error(self, trace_id, exc):
        self.errors.append((trace_id, exc))

    def names(self) -> List[str]:
        return [e["name"] for e in self.events]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def executor(recording_sleep):
    return RetryExecutor(rng=FixedRandom(0.5), sleep=recording_sleep)


@pytest.fixture
def registry(clock):
    return RateLimiterRegistry(
        [
            BucketConfig(name="text-generation", capacity=10, refill_per_minute=10, label="Text generation"),
            BucketConfig(name="image-generation", capacity=5, refill_per_minute=5, label="Image generation"),
        ],
        clock=clock,
    )


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "RETRY_MAX_RETRIES",
        "RETRY_BASE_DELAY_S",
        "RETRY_MAX_DELAY_S",
        "RETRY_JITTER",
        "RETRY_RETRYABLE_CODES",
        "RATE_LIMIT_TEXT_CAPACITY",
        "RATE_LIMIT_TEXT_REFILL_PER_MINUTE",
        "RATE_LIMIT_IMAGE_CAPACITY",
        "RATE_LIMIT_IMAGE_REFILL_PER_MINUTE",
        "RATE_LIMIT_REFILL_INTERVAL_S",
        "API_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
