"""ORM and Pydantic models for the AI invocation audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import JSON, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy ORM models."""


class InvocationAudit(Base):
    """Audit trace of a single AI capability invocation."""

    __tablename__ = "invocation_audits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invocation_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    capability: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    payload: Mapped[Any] = mapped_column(JSON, nullable=True)
    response: Mapped[Any] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class InvocationAuditModel(BaseModel):
    """Pydantic representation of the :class:`InvocationAudit` entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = Field(default=None, description="Database identifier of the entry")
    invocation_id: str
    capability: str
    status: str
    payload: Any = None
    response: Any = None
    error: str | None = None
    duration_ms: float | None = None
    created_at: datetime


__all__ = ["Base", "InvocationAudit", "InvocationAuditModel"]
