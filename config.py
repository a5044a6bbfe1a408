"""
Configuration settings for the strandlab assessment engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="INFO",
        description="Minimum loguru level for the stderr sink",
    )

    # ========================================
    # Question Blocks
    # ========================================
    feedback_delay_correct_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Minimum feedback read time after a correct answer",
    )
    feedback_delay_incorrect_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Minimum feedback read time after an incorrect answer",
    )
    block_auto_advance: bool = Field(
        default=True,
        description="Advance automatically once the feedback delay elapses",
    )
    block_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Incorrect attempts allowed per block run before retries are refused",
    )
    unlock_threshold: float = Field(
        default=6.0,
        description="Minimum block average that unlocks the next level",
    )
    celebration_threshold: float = Field(
        default=7.0,
        description="Block average that flags a celebratory completion (presentation only)",
    )
    hint_after_incorrect: int = Field(
        default=2,
        ge=1,
        description="Incorrect attempts in a run before hints are surfaced",
    )
    require_prerequisites: bool = Field(
        default=False,
        description="Start levels above 2 locked until the previous level unlocks them",
    )

    # ========================================
    # External Short-Answer Grader
    # ========================================
    grader_api_url: str | None = Field(
        default=None,
        description="Base URL of the external short-answer grading service",
    )
    grader_timeout_ms: int = Field(
        default=10000,
        description="Grader request timeout in milliseconds",
    )
    grader_retry_attempts: int = Field(
        default=2,
        ge=1,
        description="Grader attempts before falling back to local scoring",
    )

    # ========================================
    # Persistence
    # ========================================
    database_url: str = Field(
        default="sqlite:///strandlab.db",
        description="SQLAlchemy connection string for response storage",
    )
    responses_dir: str = Field(
        default="~/.strandlab/responses",
        description="Directory for JSON response files",
    )
    persistence_backend: str = Field(
        default="json",
        description="Response storage backend: json, sql or none",
    )

    # ========================================
    # Content
    # ========================================
    question_data_path: str = Field(
        default="data/questions.json",
        description="Path to the question dataset JSON",
    )
    rubric_data_path: str = Field(
        default="data/rubrics.json",
        description="Path to the strand rubric JSON",
    )

    def has_grader_configured(self) -> bool:
        """Check if an external grader URL is set."""
        return bool(self.grader_api_url)

    def get_grader_config(self) -> dict[str, Any]:
        """Get external grader configuration as a dictionary."""
        return {
            "api_url": self.grader_api_url,
            "timeout_ms": self.grader_timeout_ms,
            "retry_attempts": self.grader_retry_attempts,
        }

    def get_block_config(self) -> dict[str, Any]:
        """Get question block timing and threshold configuration."""
        return {
            "feedback_delay": {
                "correct": self.feedback_delay_correct_seconds,
                "incorrect": self.feedback_delay_incorrect_seconds,
            },
            "auto_advance": self.block_auto_advance,
            "max_attempts": self.block_max_attempts,
            "unlock_threshold": self.unlock_threshold,
            "celebration_threshold": self.celebration_threshold,
            "hint_after_incorrect": self.hint_after_incorrect,
            "require_prerequisites": self.require_prerequisites,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
