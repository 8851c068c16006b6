"""Application configuration module."""
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Centralised application settings sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    environment: str = "development"

    # Database (invocation audit trail)
    database_url: str = "sqlite:///data/ai_invocations.db"
    audit_enabled: bool = True

    # External interpreter
    python_executable: str = Field(default_factory=lambda: sys.executable)
    models_dir: Path = PROJECT_ROOT / "models"
    process_timeout_seconds: float | None = 600.0
    process_max_output_bytes: int | None = 16 * 1024 * 1024

    # Database similarity
    similarity_cross_threshold: float = 0.5
    similarity_within_threshold: float = 0.3

    # Chatbot retrieval
    chatbot_chunk_size: int = 1000
    chatbot_chunk_overlap: int = 200
    chatbot_top_k: int = 5
    groq_api_key: str | None = None
    tavily_api_key: str | None = None


settings = Settings()
