"""
Configuration settings for the ThumbsUp insights service.
Loads environment variables and provides application settings.
"""
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List

# settings.py is at thumbsup/config/settings.py → 3 levels up
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = f"sqlite:///{_PROJECT_ROOT}/data/thumbsup.db"

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    # Background pipeline
    background_workers_enabled: bool = True  # Start analysis worker + backfill scanner in the API process
    analysis_queue_poll_interval_seconds: float = 0.5  # How often a blocked dequeue re-checks cancellation
    analysis_retry_attempts: int = 3  # Attempts per analysis (and per capability call) before giving up
    analysis_retry_base_delay_seconds: float = 1.0  # First backoff delay, doubled on every retry
    analysis_retry_max_delay_seconds: float = 30.0
    analysis_capability_timeout_seconds: float = 60.0  # Per OCR/theme call; 0 disables the timeout
    analysis_capability_workers: int = 4  # Threads available for capability calls
    analysis_capability_cancel_poll_seconds: float = 0.25  # How often a capability wait re-checks cancellation
    analysis_failure_reason_max_length: int = 4000

    # Backfill scanner
    backfill_enabled: bool = True
    backfill_initial_delay_seconds: float = 10.0  # Let startup and migrations settle first
    backfill_interval_seconds: float = 300.0  # Fixed period between scans
    backfill_pending_grace_minutes: int = 5  # Pending rows older than this are treated as stuck
    backfill_batch_limit: int = 500  # Max submissions enqueued per tick

    # Client summaries / prediction
    summary_top_tags: int = 15  # Tags considered when describing style preferences
    summary_highlight_limit: int = 5  # Items per highlight list
    summary_recent_comments: int = 10  # Most recent review comments folded into a rebuild
    predictor_tag_weight: float = 0.05  # Probability added per tag shared with approved work

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS origins string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
