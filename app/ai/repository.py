"""Persistence helpers for capability audit entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from app.models import InvocationAudit

from .service import InvocationAuditEntry


@dataclass(slots=True)
class SQLAInvocationAuditRepository:
    """Persist invocation audit entries using a SQLAlchemy session factory."""

    session_factory: Callable[[], Session]

    def add(self, entry: InvocationAuditEntry) -> InvocationAudit:
        session = self.session_factory()
        try:
            record = InvocationAudit(
                invocation_id=entry.invocation_id,
                capability=entry.capability,
                status=entry.status,
                payload=entry.payload,
                response=entry.response,
                error=entry.error,
                duration_ms=entry.duration_ms,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record
        finally:
            session.close()


__all__ = ["SQLAInvocationAuditRepository"]
