"""Factories wiring the AI bridge from configuration settings."""

from __future__ import annotations

from app.ai.invoker import ProcessInvoker
from app.ai.repository import SQLAInvocationAuditRepository
from app.ai.service import AIService
from app.config import Settings, settings
from app.db import SessionLocal


def build_process_invoker(config: Settings = settings) -> ProcessInvoker:
    """Create a :class:`ProcessInvoker` honouring the configured limits."""

    return ProcessInvoker(
        executable=config.python_executable,
        timeout=config.process_timeout_seconds,
        max_output_bytes=config.process_max_output_bytes,
    )


def build_audit_repository(config: Settings = settings) -> SQLAInvocationAuditRepository | None:
    """Return the SQL audit repository unless auditing is disabled."""

    if not config.audit_enabled:
        return None
    return SQLAInvocationAuditRepository(session_factory=SessionLocal)


def build_ai_service(config: Settings = settings) -> AIService:
    """Return a ready-to-use :class:`AIService`."""

    chatbot_env: dict[str, str] = {}
    if config.groq_api_key:
        chatbot_env["GROQ_API_KEY"] = config.groq_api_key
    if config.tavily_api_key:
        chatbot_env["TAVILY_API_KEY"] = config.tavily_api_key

    return AIService(
        invoker=build_process_invoker(config),
        models_dir=config.models_dir,
        audit_repository=build_audit_repository(config),
        cross_threshold=config.similarity_cross_threshold,
        within_threshold=config.similarity_within_threshold,
        chunk_size=config.chatbot_chunk_size,
        chunk_overlap=config.chatbot_chunk_overlap,
        top_k=config.chatbot_top_k,
        chatbot_env=chatbot_env,
    )


__all__ = ["build_ai_service", "build_audit_repository", "build_process_invoker"]
