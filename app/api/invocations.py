"""Endpoints to explore the AI invocation audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_session
from app.models import InvocationAudit, InvocationAuditModel

router = APIRouter(prefix="/invocations", tags=["invocations"])


@router.get("/", summary="Paginated list of capability invocations")
def list_invocations(
    *,
    capability: str | None = Query(None, description="Filter by capability name"),
    status: str | None = Query(None, description="Filter by outcome (succeeded/failed)"),
    invocation_id: str | None = Query(None, description="Filter by invocation identifier"),
    date_from: str | None = Query(None, description="Minimum timestamp in ISO-8601"),
    date_to: str | None = Query(None, description="Maximum timestamp in ISO-8601"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    """Return a page of invocation audits using the provided filters."""

    capability = _unwrap_query(capability)
    status = _unwrap_query(status)
    invocation_id = _unwrap_query(invocation_id)
    date_from = _unwrap_query(date_from)
    date_to = _unwrap_query(date_to)
    limit = _unwrap_int(limit, 50)
    offset = _unwrap_int(offset, 0)

    query = session.query(InvocationAudit)

    if capability:
        query = query.filter(InvocationAudit.capability == capability)
    if status:
        query = query.filter(InvocationAudit.status == status)
    if invocation_id:
        query = query.filter(InvocationAudit.invocation_id == invocation_id)

    if date_from:
        parsed = _parse_datetime(date_from)
        if parsed:
            query = query.filter(InvocationAudit.created_at >= parsed)
    if date_to:
        parsed = _parse_datetime(date_to)
        if parsed:
            query = query.filter(InvocationAudit.created_at <= parsed)

    total = query.count()
    items = (
        query.order_by(InvocationAudit.created_at.desc(), InvocationAudit.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    payload = [InvocationAuditModel.model_validate(item).model_dump() for item in items]
    return {"total": total, "items": payload}


@router.get("/metadata", summary="Values available for the listing filters")
def metadata(session: Session = Depends(get_session)) -> dict[str, list[str]]:
    """Return distinct capabilities and statuses recorded so far."""

    capabilities = [
        row[0]
        for row in session.query(InvocationAudit.capability).distinct().all()
        if row[0]
    ]
    statuses = [
        row[0] for row in session.query(InvocationAudit.status).distinct().all() if row[0]
    ]

    return {"capabilities": sorted(capabilities), "statuses": sorted(statuses)}


def _parse_datetime(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:  # pragma: no cover - defensive against malformed input
        return None


def _unwrap_query(value: Any) -> str | None:
    if isinstance(value, str) or value is None:
        return value
    return None


def _unwrap_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):  # pragma: no cover - defensive fallback
        return default


__all__ = ["router"]
