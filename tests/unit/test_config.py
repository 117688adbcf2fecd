import pytest

from subdivision_ai.config import ResilienceSettings
from subdivision_ai.resilience.registry import IMAGE_GENERATION, TEXT_GENERATION, BucketConfig


def test_defaults_match_documented_values():
    settings = ResilienceSettings.from_env()
    policy = settings.retry_policy()
    assert (policy.max_retries, policy.base_delay_s, policy.max_delay_s) == (3, 1.0, 10.0)
    assert policy.retryable_codes == frozenset({429, 500, 503, "ETIMEDOUT", "ECONNRESET"})

    buckets = {cfg.name: cfg for cfg in settings.bucket_configs()}
    assert buckets[TEXT_GENERATION].capacity == 10
    assert buckets[TEXT_GENERATION].refill_rate == pytest.approx(10 / 60)
    assert buckets[IMAGE_GENERATION].capacity == 5
    assert buckets[IMAGE_GENERATION].refill_rate == pytest.approx(5 / 60)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("RETRY_MAX_RETRIES", "5")
    monkeypatch.setenv("RETRY_BASE_DELAY_S", "0.25")
    monkeypatch.setenv("RETRY_RETRYABLE_CODES", "429, 502,ETIMEDOUT,INVALID_PLAN")
    monkeypatch.setenv("RATE_LIMIT_TEXT_CAPACITY", "20")
    monkeypatch.setenv("RATE_LIMIT_IMAGE_REFILL_PER_MINUTE", "2")

    settings = ResilienceSettings.from_env()
    policy = settings.retry_policy()
    assert policy.max_retries == 5
    assert policy.base_delay_s == 0.25
    assert policy.retryable_codes == frozenset({429, 502, "ETIMEDOUT", "INVALID_PLAN"})

    buckets = {cfg.name: cfg for cfg in settings.bucket_configs()}
    assert buckets[TEXT_GENERATION].capacity == 20
    assert buckets[IMAGE_GENERATION].refill_rate == pytest.approx(2 / 60)


def test_invalid_number_names_the_variable(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_TEXT_CAPACITY", "ten")
    with pytest.raises(ValueError, match="RATE_LIMIT_TEXT_CAPACITY"):
        ResilienceSettings.from_env()


def test_extra_buckets_are_appended():
    extra = BucketConfig(name="plan-refinement", capacity=2, refill_per_minute=1)
    settings = ResilienceSettings(extra_buckets=(extra,))
    names = [cfg.name for cfg in settings.bucket_configs()]
    assert names == [TEXT_GENERATION, IMAGE_GENERATION, "plan-refinement"]
    assert extra.display_name == "Plan refinement"


def test_log_level_is_normalised(monkeypatch):
    monkeypatch.setenv("API_LOG_LEVEL", " WARNING ")
    assert ResilienceSettings.from_env().log_level == "warning"


def test_invalid_log_level_names_the_variable(monkeypatch):
    monkeypatch.setenv("API_LOG_LEVEL", "loud")
    with pytest.raises(ValueError, match="API_LOG_LEVEL"):
        ResilienceSettings.from_env()
