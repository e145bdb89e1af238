"""Application configuration via environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DEBUG: bool = False
    LOG_LEVEL: str = "info"

    # Linter
    LINTER_COMMAND: list[str] = ["npx", "bpmnlint"]
    LINT_TIMEOUT_SECONDS: float = 30.0
    LINT_CONFIG_PATH: str = ".bpmnlintrc"
    LINT_RULESET: str = "bpmnlint:recommended"

    # Uploads
    UPLOAD_DIR: Optional[str] = None  # None = OS temp dir
    UPLOAD_SUFFIX: str = ".bpmn"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Admission
    MAX_CONCURRENT_VALIDATIONS: int = 4

    # Rate Limiting
    RATE_LIMIT_MAX_REQUESTS: int = 60
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
