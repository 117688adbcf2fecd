from __future__ import annotations

from fastapi import APIRouter

from subdivision_ai.api.schemas import ClassifiedErrorResponse, ClassifyRequest
from subdivision_ai.resilience.classifier import classify_error

router = APIRouter(prefix="/errors", tags=["errors"])


@router.post("/classify", response_model=ClassifiedErrorResponse, summary="Classify a raw generation failure")
async def classify(body: ClassifyRequest) -> ClassifiedErrorResponse:
    return ClassifiedErrorResponse.from_error(classify_error(body.as_raw()))
