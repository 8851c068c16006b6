from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.ai.repository import SQLAInvocationAuditRepository
from app.ai.service import InvocationAuditEntry
from app.models import Base, InvocationAudit, InvocationAuditModel


def _create_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, future=True)


def test_repository_persists_entries():
    SessionFactory = _create_session_factory()
    repository = SQLAInvocationAuditRepository(session_factory=SessionFactory)

    record = repository.add(
        InvocationAuditEntry(
            invocation_id="abc123",
            capability="classification",
            status="succeeded",
            payload={"text": "spam"},
            response={"priority": "low", "score": 0.1},
            duration_ms=8.25,
        )
    )

    assert record.id is not None
    with SessionFactory() as session:
        stored = session.scalars(select(InvocationAudit)).one()
        model = InvocationAuditModel.model_validate(stored)

    assert model.invocation_id == "abc123"
    assert model.capability == "classification"
    assert model.payload == {"text": "spam"}
    assert model.response == {"priority": "low", "score": 0.1}
    assert model.error is None
    assert model.created_at is not None


def test_repository_accepts_non_object_responses():
    SessionFactory = _create_session_factory()
    repository = SQLAInvocationAuditRepository(session_factory=SessionFactory)

    repository.add(
        InvocationAuditEntry(
            invocation_id="list-response",
            capability="similarity",
            status="succeeded",
            payload={},
            response=[1, 2, 3],
        )
    )

    with SessionFactory() as session:
        stored = session.scalars(select(InvocationAudit)).one()

    assert stored.response == [1, 2, 3]
