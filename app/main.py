"""Application entry point for the cybercrime AI bridge."""
from fastapi import APIRouter, FastAPI

from .api.ai import router as ai_router
from .api.invocations import router as invocations_router
from .config import settings
from .logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)
logger.info(
    "app.startup",
    environment=settings.environment,
    models_dir=str(settings.models_dir),
    python_executable=settings.python_executable,
)

app = FastAPI(title="cybercrime-ai-bridge", version="0.1.0")

router = APIRouter(tags=["health"])


@router.get("/health", summary="Infra healthcheck")
def healthcheck() -> dict[str, str]:
    """Simple health endpoint for infrastructure smoke tests."""

    return {"status": "ok", "environment": settings.environment}


app.include_router(router)
app.include_router(ai_router)
app.include_router(invocations_router)
