"""Capability adapters that delegate AI work to external interpreter processes."""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from pydantic import BaseModel

from app.logging import get_logger, invocation_context

from .exceptions import CapabilityError, ProcessInvocationError, UnsupportedFileTypeError
from .invoker import InvocationRequest, ProcessInvoker
from .schemas import EvidenceBundle
from .scripts import DEFAULT_SCRIPTS, EXTRACTION_SCRIPTS, SUMMARIZER_DIR, CapabilityScript


@dataclass(slots=True)
class InvocationAuditEntry:
    """Structured payload used to persist capability audit traces."""

    invocation_id: str
    capability: str
    status: str
    payload: Any
    response: Any = None
    error: str | None = None
    duration_ms: float | None = None


class InvocationAuditRepository(Protocol):
    """Repository interface used by :class:`AIService` to persist audits."""

    def add(self, entry: InvocationAuditEntry) -> Any:  # pragma: no cover - protocol
        """Persist *entry* in the underlying storage backend."""


class AIService:
    """Expose the AI capabilities backed by the external model scripts.

    Each capability runs exactly one interpreter process. Failures are
    re-raised as :class:`CapabilityError` whose message starts with a fixed
    tag naming the capability, e.g. ``"Chatbot response failed: ..."``.
    """

    def __init__(
        self,
        *,
        invoker: ProcessInvoker,
        models_dir: Path,
        scripts: Mapping[str, CapabilityScript] | None = None,
        audit_repository: InvocationAuditRepository | None = None,
        cross_threshold: float = 0.5,
        within_threshold: float = 0.3,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        top_k: int = 5,
        chatbot_env: Mapping[str, str] | None = None,
    ) -> None:
        self._invoker = invoker
        self._models_dir = Path(models_dir)
        self._scripts = {**DEFAULT_SCRIPTS, **(scripts or {})}
        self._audit_repository = audit_repository
        self._cross_threshold = cross_threshold
        self._within_threshold = within_threshold
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._top_k = top_k
        self._chatbot_env = dict(chatbot_env or {})
        self._logger = get_logger(__name__)

    async def analyze_complaint(self, evidence: EvidenceBundle | Mapping[str, Any]) -> Any:
        """Return ``{"details", "summary"}`` for a complaint and its evidence."""

        return await self._run_inline("analysis", "AI analysis failed", _as_payload(evidence))

    async def check_database_similarity(self, entity: BaseModel | Mapping[str, Any]) -> Any:
        """Match scam records across and within the victim/official databases."""

        return await self._run_inline(
            "similarity",
            "Database similarity check failed",
            _as_payload(entity),
            extra_args=(str(self._cross_threshold), str(self._within_threshold)),
        )

    async def get_chatbot_response(self, query: str, context: str = "") -> Any:
        """Answer *query* using the retrieval-augmented chatbot pipeline."""

        spawn_options: dict[str, Any] = {}
        if self._chatbot_env:
            spawn_options["env"] = {**os.environ, **self._chatbot_env}
        return await self._run_inline(
            "chatbot",
            "Chatbot response failed",
            {"query": query, "context": context},
            extra_args=(str(self._chunk_size), str(self._chunk_overlap), str(self._top_k)),
            spawn_options=spawn_options,
        )

    async def extract_text_from_file(self, file_path: str, file_type: str) -> Any:
        """Run the standalone extractor for *file_type* against *file_path*.

        Unsupported types fail before any process is started. Plain text output
        is returned as ``{"text": ...}``.
        """

        label = "Text extraction failed"
        script_name = EXTRACTION_SCRIPTS.get(file_type.lower())
        if script_name is None:
            self._logger.warning("ai.extraction.unsupported_type", file_type=file_type)
            raise CapabilityError("extraction", label, UnsupportedFileTypeError(file_type))

        request = InvocationRequest(
            script=str(self._models_dir / SUMMARIZER_DIR / script_name),
            inline=False,
            args=(str(file_path),),
            fallback_key="text",
        )
        audit_payload = {"file_path": str(file_path), "file_type": file_type}
        return await self._execute("extraction", label, request, audit_payload)

    async def classify_content(self, content: str | BaseModel | Mapping[str, Any]) -> Any:
        """Return ``{"priority", "score"}`` for free text or an incident record."""

        payload = {"text": content} if isinstance(content, str) else _as_payload(content)
        return await self._run_inline("classification", "Content classification failed", payload)

    async def find_contradictions(self, evidence: EvidenceBundle | Mapping[str, Any]) -> Any:
        """Compare the complaint with its evidence, returning ``{"analysis", "has_contradiction"}``."""

        return await self._run_inline(
            "contradictions", "Contradiction analysis failed", _as_payload(evidence)
        )

    async def _run_inline(
        self,
        capability: str,
        label: str,
        payload: Any,
        *,
        extra_args: tuple[str, ...] = (),
        spawn_options: Mapping[str, Any] | None = None,
    ) -> Any:
        script = self._scripts[capability]
        request = InvocationRequest(
            script=script.source,
            inline=True,
            payload=payload,
            args=(str(self._models_dir / script.models_subdir), *extra_args),
            spawn_options=dict(spawn_options or {}),
        )
        return await self._execute(capability, label, request, payload)

    async def _execute(
        self,
        capability: str,
        label: str,
        request: InvocationRequest,
        audit_payload: Any,
    ) -> Any:
        invocation_id = uuid4().hex
        started = time.perf_counter()
        with invocation_context(capability=capability, invocation_id=invocation_id):
            self._logger.info("ai.capability.start")
            try:
                result = await self._invoker.invoke(request)
            except ProcessInvocationError as exc:
                duration_ms = _elapsed_ms(started)
                self._logger.warning(
                    "ai.capability.failed", error=str(exc), duration_ms=duration_ms
                )
                await self._record_audit(
                    InvocationAuditEntry(
                        invocation_id=invocation_id,
                        capability=capability,
                        status="failed",
                        payload=_ensure_serializable(audit_payload),
                        error=str(exc),
                        duration_ms=duration_ms,
                    )
                )
                raise CapabilityError(capability, label, exc) from exc

            duration_ms = _elapsed_ms(started)
            self._logger.info("ai.capability.completed", duration_ms=duration_ms)
            await self._record_audit(
                InvocationAuditEntry(
                    invocation_id=invocation_id,
                    capability=capability,
                    status="succeeded",
                    payload=_ensure_serializable(audit_payload),
                    response=_ensure_serializable(result),
                    duration_ms=duration_ms,
                )
            )
            return result

    async def _record_audit(self, entry: InvocationAuditEntry) -> None:
        if self._audit_repository is None:
            return
        # Repositories are synchronous; keep their I/O off the event loop.
        try:
            await asyncio.to_thread(self._audit_repository.add, entry)
        except Exception as exc:
            self._logger.exception(
                "ai.audit.failed",
                audit_status=entry.status,
                error=str(exc),
            )


def _as_payload(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return dict(value)
    return value


def _ensure_serializable(value: Any) -> Any:
    """Best effort conversion to JSON-compatible data structures."""

    if isinstance(value, Mapping):
        return {str(key): _ensure_serializable(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_ensure_serializable(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


__all__ = [
    "AIService",
    "InvocationAuditEntry",
    "InvocationAuditRepository",
]
