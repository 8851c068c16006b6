"""Endpoints exposing the AI capabilities backed by external model scripts."""
from __future__ import annotations

from typing import Any, Awaitable

from fastapi import APIRouter, HTTPException, status

from app.ai.exceptions import (
    CapabilityError,
    InvocationTimeoutError,
    UnsupportedFileTypeError,
)
from app.ai.schemas import (
    ChatbotQuery,
    ClassificationRequest,
    EvidenceBundle,
    ExtractionRequest,
    SimilarityRequest,
)
from app.logging import get_logger
from app.services import build_ai_service


router = APIRouter(prefix="/ai", tags=["ai"])
ai_service = build_ai_service()

logger = get_logger(__name__)


@router.post("/analyze", summary="Analyse a complaint and its evidence")
async def analyze_complaint(payload: EvidenceBundle) -> Any:
    """Return incident details and a narrative summary for *payload*."""

    return await _call(ai_service.analyze_complaint(payload))


@router.post("/similarity", summary="Match an entity against scam record databases")
async def check_database_similarity(payload: SimilarityRequest) -> Any:
    """Return cross-database and within-database matches."""

    return await _call(ai_service.check_database_similarity(payload))


@router.post("/chatbot", summary="Ask the knowledge-base chatbot")
async def get_chatbot_response(payload: ChatbotQuery) -> Any:
    """Return the synthesised answer and its sources."""

    return await _call(ai_service.get_chatbot_response(payload.query, payload.context))


@router.post("/extract", summary="Extract text from a stored file")
async def extract_text_from_file(payload: ExtractionRequest) -> Any:
    """Return the text extracted from ``file_path``."""

    return await _call(
        ai_service.extract_text_from_file(payload.file_path, payload.file_type)
    )


@router.post("/classify", summary="Prioritise complaint content")
async def classify_content(payload: ClassificationRequest) -> Any:
    """Return the priority label and score."""

    return await _call(ai_service.classify_content(payload.content))


@router.post("/contradictions", summary="Detect contradictions against the evidence")
async def find_contradictions(payload: EvidenceBundle) -> Any:
    """Return the contradiction analysis and flag."""

    return await _call(ai_service.find_contradictions(payload))


async def _call(awaitable: Awaitable[Any]) -> Any:
    try:
        return await awaitable
    except CapabilityError as exc:
        status_code = _status_for(exc)
        logger.warning(
            "ai.request.failed",
            capability=exc.capability,
            status_code=status_code,
            error=str(exc),
        )
        raise HTTPException(status_code=status_code, detail=str(exc)) from exc


def _status_for(error: CapabilityError) -> int:
    if isinstance(error.original_error, UnsupportedFileTypeError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error.original_error, InvocationTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    return status.HTTP_502_BAD_GATEWAY


__all__ = ["ai_service", "router"]
