"""Pydantic request models accepted by the AI capabilities."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EvidenceBundle(BaseModel):
    """Complaint narrative plus optional paths to multi-modal evidence."""

    model_config = ConfigDict(extra="allow")

    complaint: str = Field(default="", description="Free text narrative of the incident")
    image_path: str | None = None
    pdf_path: str | None = None
    audio_path: str | None = None
    video_path: str | None = None


class ChatbotQuery(BaseModel):
    """Question for the retrieval-augmented chatbot."""

    query: str
    context: str = ""


class ExtractionRequest(BaseModel):
    """File on disk whose text should be extracted."""

    file_path: str
    file_type: str = Field(description="One of pdf, image, audio or video")


class ClassificationRequest(BaseModel):
    """Free text or a structured incident record to prioritise."""

    content: str | dict[str, Any]


class SimilarityRequest(BaseModel):
    """Entity identifiers to compare against the scam record databases."""

    model_config = ConfigDict(extra="allow")

    phones: list[str] | None = None
    emails: list[str] | None = None
    websites: list[str] | None = None


__all__ = [
    "ChatbotQuery",
    "ClassificationRequest",
    "EvidenceBundle",
    "ExtractionRequest",
    "SimilarityRequest",
]
