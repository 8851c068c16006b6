"""Service layer factories used by the API."""

from .ai_bridge import build_ai_service, build_audit_repository, build_process_invoker

__all__ = [
    "build_ai_service",
    "build_audit_repository",
    "build_process_invoker",
]
