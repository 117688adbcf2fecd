import pytest

from subdivision_ai.resilience.errors import RateLimitExceededError, UnknownResourceError
from subdivision_ai.resilience.registry import (
    DEFAULT_BUCKETS,
    IMAGE_GENERATION,
    TEXT_GENERATION,
    Admitted,
    RateLimiterRegistry,
    RateLimitExceeded,
)


def test_default_registry_defines_text_and_image_buckets():
    registry = RateLimiterRegistry()
    assert set(registry.names()) == {TEXT_GENERATION, IMAGE_GENERATION}
    assert registry.status(TEXT_GENERATION).capacity == 10
    assert registry.status(IMAGE_GENERATION).capacity == 5
    assert {cfg.name: cfg.refill_rate for cfg in DEFAULT_BUCKETS} == {
        TEXT_GENERATION: pytest.approx(10 / 60),
        IMAGE_GENERATION: pytest.approx(5 / 60),
    }


def test_check_and_consume_admits_until_bucket_is_empty(registry):
    for _ in range(5):
        assert isinstance(registry.check_and_consume(IMAGE_GENERATION), Admitted)

    rejected = registry.check_and_consume(IMAGE_GENERATION)
    assert isinstance(rejected, RateLimitExceeded)
    assert rejected.ok is False
    assert rejected.resource == IMAGE_GENERATION
    assert rejected.wait_time_s == pytest.approx(12.0)
    assert rejected.message == "Image generation rate limit exceeded. Please wait 12 seconds."


def test_rejection_converts_to_exception(registry):
    for _ in range(10):
        registry.check_and_consume(TEXT_GENERATION)
    rejected = registry.check_and_consume(TEXT_GENERATION)

    exc = rejected.to_exception()
    assert isinstance(exc, RateLimitExceededError)
    assert exc.resource == TEXT_GENERATION
    assert str(exc) == "Text generation rate limit exceeded. Please wait 6 seconds."


def test_buckets_are_independent(registry):
    for _ in range(5):
        registry.check_and_consume(IMAGE_GENERATION)
    assert isinstance(registry.check_and_consume(TEXT_GENERATION), Admitted)
    assert registry.status(TEXT_GENERATION).available == 9


def test_status_all_is_idempotent(registry, clock):
    registry.check_and_consume(TEXT_GENERATION)
    first = registry.status_all()
    second = registry.status_all()
    assert first == second
    assert first[TEXT_GENERATION].available == 9
    assert first[IMAGE_GENERATION].available == 5


def test_status_reflects_lazy_refill(registry, clock):
    for _ in range(10):
        registry.check_and_consume(TEXT_GENERATION)
    assert registry.status(TEXT_GENERATION).available == 0
    clock.advance(12)
    assert registry.status(TEXT_GENERATION).available == 2


def test_reset_single_and_all(registry):
    for _ in range(3):
        registry.check_and_consume(TEXT_GENERATION)
        registry.check_and_consume(IMAGE_GENERATION)

    registry.reset(TEXT_GENERATION)
    assert registry.status(TEXT_GENERATION).available == 10
    assert registry.status(IMAGE_GENERATION).available == 2

    registry.reset()
    assert registry.status(IMAGE_GENERATION).available == 5


def test_unknown_resource_raises():
    registry = RateLimiterRegistry()
    with pytest.raises(UnknownResourceError) as info:
        registry.check_and_consume("video-generation")
    assert isinstance(info.value, KeyError)
    assert "video-generation" in str(info.value)
