"""
Application configuration management.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # GitHub
    github_token: str
    github_host: str = "github.com"

    # OpenAI
    openai_api_key: str
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment: Optional[str] = None
    analysis_model: str = "gpt-4o"
    analysis_max_tokens: int = 2048

    # Webhook
    webhook_secret: str

    # Sandbox
    sandbox_root: Path = Path(tempfile.gettempdir()) / "review-bot-sandboxes"

    # Pull request review
    review_max_files: int = 5
    review_content_chars: int = 1000

    # Repository triage
    triage_branch: str = "test-review"
    triage_excluded_dirs: List[str] = ["node_modules", ".git"]
    triage_max_files: int = 200
    triage_max_total_chars: int = 200_000

    # Application
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
