"""
Application Configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings read from the environment (or .env); names are case-insensitive."""

    environment: str = "development"
    log_level: str = "INFO"

    # Matching engine
    # Pairwise scoring may fan out over a thread pool; the greedy reduction never does.
    match_scoring_workers: int = Field(1, ge=1)
    match_sale_batch_size: int = Field(100, ge=1)  # Cancellation is polled once per batch

    # Reporting
    conversion_display_threshold: float = Field(0.90, ge=0.0, le=1.0)  # Counted as "converted" in summaries

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
