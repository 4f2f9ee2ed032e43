"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wordfreq.constants import (
    DEFAULT_CHANNEL_SIZE,
    DEFAULT_MESSAGE_VISIBILITY_SECONDS,
    DEFAULT_QUEUE_WAIT_SECONDS,
    DEFAULT_RECEIVE_BACKOFF_SECONDS,
    DEFAULT_TOP_WORDS,
    MAX_TOP_WORDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Queues and table
    worker_queue_url: str = Field(min_length=1)
    worker_result_queue_url: str = Field(min_length=1)
    worker_result_tablename: str = Field(min_length=1)

    # Worker Configuration
    worker_message_visibility: int = Field(default=DEFAULT_MESSAGE_VISIBILITY_SECONDS, gt=0)
    worker_count: int | None = Field(default=None, gt=0)
    worker_queue_wait_seconds: int = Field(default=DEFAULT_QUEUE_WAIT_SECONDS, ge=0, le=20)
    worker_receive_backoff_seconds: float = Field(default=DEFAULT_RECEIVE_BACKOFF_SECONDS, gt=0)
    worker_max_messages: int = Field(default=1, ge=1, le=10)
    worker_job_channel_size: int = Field(default=DEFAULT_CHANNEL_SIZE, gt=0)
    worker_result_channel_size: int = Field(default=DEFAULT_CHANNEL_SIZE, gt=0)
    worker_top_words: int = Field(default=DEFAULT_TOP_WORDS, ge=1, le=MAX_TOP_WORDS)

    # AWS
    aws_region: str | None = None

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "wordfreq-worker"
    prometheus_port: int = Field(default=9090, ge=0)
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    @property
    def num_workers(self) -> int:
        """Worker pool size, defaulting to the available parallelism."""
        return self.worker_count or os.cpu_count() or 1


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
