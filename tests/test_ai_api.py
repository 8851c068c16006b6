from __future__ import annotations

import asyncio

import pytest
from fastapi import HTTPException

from app.ai.exceptions import (
    CapabilityError,
    InvocationTimeoutError,
    NonZeroExitError,
    UnsupportedFileTypeError,
)
from app.ai.schemas import (
    ChatbotQuery,
    ClassificationRequest,
    EvidenceBundle,
    ExtractionRequest,
    SimilarityRequest,
)
from app.api import ai as ai_module


class StubService:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.error = error

    async def _respond(self, name: str, *args):  # type: ignore[no-untyped-def]
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error
        return {"capability": name}

    async def analyze_complaint(self, evidence):  # type: ignore[no-untyped-def]
        return await self._respond("analysis", evidence)

    async def check_database_similarity(self, entity):  # type: ignore[no-untyped-def]
        return await self._respond("similarity", entity)

    async def get_chatbot_response(self, query, context=""):  # type: ignore[no-untyped-def]
        return await self._respond("chatbot", query, context)

    async def extract_text_from_file(self, file_path, file_type):  # type: ignore[no-untyped-def]
        return await self._respond("extraction", file_path, file_type)

    async def classify_content(self, content):  # type: ignore[no-untyped-def]
        return await self._respond("classification", content)

    async def find_contradictions(self, evidence):  # type: ignore[no-untyped-def]
        return await self._respond("contradictions", evidence)


def test_routes_delegate_to_service(monkeypatch):
    service = StubService()
    monkeypatch.setattr(ai_module, "ai_service", service)
    evidence = EvidenceBundle(complaint="otp scam")

    assert asyncio.run(ai_module.analyze_complaint(evidence)) == {"capability": "analysis"}
    asyncio.run(ai_module.check_database_similarity(SimilarityRequest(phones=["+91"])))
    asyncio.run(ai_module.get_chatbot_response(ChatbotQuery(query="test")))
    asyncio.run(
        ai_module.extract_text_from_file(ExtractionRequest(file_path="a.pdf", file_type="pdf"))
    )
    asyncio.run(ai_module.classify_content(ClassificationRequest(content="spam")))
    asyncio.run(ai_module.find_contradictions(evidence))

    assert [name for name, _ in service.calls] == [
        "analysis",
        "similarity",
        "chatbot",
        "extraction",
        "classification",
        "contradictions",
    ]
    assert service.calls[2] == ("chatbot", ("test", ""))
    assert service.calls[3] == ("extraction", ("a.pdf", "pdf"))
    assert service.calls[4] == ("classification", ("spam",))


@pytest.mark.parametrize(
    ("original", "expected_status"),
    [
        (UnsupportedFileTypeError("docx"), 400),
        (InvocationTimeoutError(5), 504),
        (NonZeroExitError(1, "boom", ""), 502),
    ],
)
def test_capability_errors_map_to_http_status(monkeypatch, original, expected_status):
    error = CapabilityError("extraction", "Text extraction failed", original)
    monkeypatch.setattr(ai_module, "ai_service", StubService(error=error))

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(
            ai_module.extract_text_from_file(
                ExtractionRequest(file_path="a.docx", file_type="docx")
            )
        )

    assert excinfo.value.status_code == expected_status
    assert excinfo.value.detail.startswith("Text extraction failed:")


def test_healthcheck_reports_environment():
    from app.main import healthcheck

    assert healthcheck()["status"] == "ok"
