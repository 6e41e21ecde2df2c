"""Runtime settings and shared constants."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

MISSING_FIELD_PLACEHOLDER = "N/A"
MIN_DOWNLOADS_FOR_MINOR_RELEASE = 500
STALE_AFTER_DAYS = 365

# Documentation coverage thresholds (percent)
DOC_COVERAGE_GOOD = 50
DOC_COVERAGE_POOR = 10


class Settings(BaseModel):
    """Settings for one check run.

    Values come from the environment (and a ``.env`` file, loaded by the CLI)
    unless passed explicitly.
    """

    github_token: str | None = None
    crates_api_url: str = "https://crates.io/api/v1"
    github_api_url: str = "https://api.github.com"
    docs_url: str = "https://docs.rs"
    user_agent: str = "wmtcheck (https://github.com/olamyy/wmt)"
    timeout: float = Field(default=30.0, gt=0)
    max_concurrency: int = Field(default=4, ge=1)
    questions_path: Path | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        env = {
            "github_token": os.environ.get("GITHUB_TOKEN"),
            "crates_api_url": os.environ.get("WMT_CRATES_API_URL"),
            "github_api_url": os.environ.get("WMT_GITHUB_API_URL"),
            "docs_url": os.environ.get("WMT_DOCS_URL"),
            "user_agent": os.environ.get("WMT_USER_AGENT"),
            "timeout": os.environ.get("WMT_HTTP_TIMEOUT"),
            "max_concurrency": os.environ.get("WMT_MAX_CONCURRENCY"),
            "questions_path": os.environ.get("WMT_QUESTIONS_PATH"),
        }
        return cls(**{key: value for key, value in env.items() if value})
