from __future__ import annotations

from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from subdivision_ai.resilience.errors import ClassifiedError
from subdivision_ai.resilience.token_bucket import BucketStatus


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class BucketStatusModel(BaseModel):
    available: int = Field(..., description="Whole tokens currently available")
    capacity: int = Field(..., description="Maximum tokens the bucket holds")
    wait_time_s: float = Field(..., description="Seconds until one more request is admitted (0 when available)")

    @classmethod
    def from_status(cls, status: BucketStatus) -> "BucketStatusModel":
        return cls(available=status.available, capacity=status.capacity, wait_time_s=status.wait_time_s)


RateLimitStatusResponse = Dict[str, BucketStatusModel]


class ClassifyRequest(BaseModel):
    """
    Raw failure as reported by the generation client.
    Either ``status`` (HTTP-like) or ``code`` (network / validation symbol) is expected.
    """

    status: Optional[int] = Field(default=None, description="HTTP-like status code", examples=[429])
    code: Optional[Union[int, str]] = Field(
        default=None,
        description="Network or validation symbol",
        examples=["ETIMEDOUT"],
    )
    message: Optional[str] = Field(default=None, description="Original diagnostic text")

    def as_raw(self) -> dict:
        raw: dict = {}
        if self.status is not None:
            raw["status"] = self.status
        if self.code is not None:
            raw["code"] = self.code
        if self.message is not None:
            raw["message"] = self.message
        return raw


class ClassifiedErrorResponse(BaseModel):
    code: Union[int, str]
    kind: Literal["http", "network", "validation", "unknown"]
    retryable: bool
    user_message: str
    suggested_action: Optional[str] = None
    actionable: bool = False
    severity: Literal["critical", "error", "warning"]

    @classmethod
    def from_error(cls, error: ClassifiedError) -> "ClassifiedErrorResponse":
        return cls(**error.to_dict())
