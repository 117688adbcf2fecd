from subdivision_ai.resilience.classifier import classify_error, user_message_for
from subdivision_ai.resilience.errors import (
    ClassifiedError,
    GenerationFailedError,
    OperationCancelledError,
    PlanValidationError,
    RateLimitExceededError,
    ResilienceError,
    UnknownResourceError,
)
from subdivision_ai.resilience.registry import (
    IMAGE_GENERATION,
    TEXT_GENERATION,
    Admitted,
    BucketConfig,
    RateLimiterRegistry,
    RateLimitExceeded,
)
from subdivision_ai.resilience.retry import (
    DEFAULT_RETRY_POLICY,
    Cancelled,
    Failed,
    RateLimited,
    RetryAttempt,
    RetryExecutor,
    RetryPolicy,
    Succeeded,
)
from subdivision_ai.resilience.token_bucket import BucketStatus, TokenBucket
from subdivision_ai.resilience.gateway import ResilienceGateway

__all__ = [
    "classify_error",
    "user_message_for",
    "ClassifiedError",
    "GenerationFailedError",
    "OperationCancelledError",
    "PlanValidationError",
    "RateLimitExceededError",
    "ResilienceError",
    "UnknownResourceError",
    "IMAGE_GENERATION",
    "TEXT_GENERATION",
    "Admitted",
    "BucketConfig",
    "RateLimiterRegistry",
    "RateLimitExceeded",
    "DEFAULT_RETRY_POLICY",
    "Cancelled",
    "Failed",
    "RateLimited",
    "RetryAttempt",
    "RetryExecutor",
    "RetryPolicy",
    "Succeeded",
    "BucketStatus",
    "TokenBucket",
    "ResilienceGateway",
]
