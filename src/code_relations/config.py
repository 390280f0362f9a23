"""Runtime settings for the relations analyzer."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Longest pause the OpenAI client takes between two attempts.
RETRY_BACKOFF_CAP = 8.0


class Settings(BaseSettings):
    """Application settings, read from ``CODE_RELATIONS_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="CODE_RELATIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    memory_bank_path: Optional[Path] = Field(default=None)
    workspace_root: Optional[Path] = Field(default=None)

    # Batch widths
    parse_batch_size: int = Field(default=20, ge=1)
    enrich_batch_size: int = Field(default=5, ge=1)

    # Text generation
    openai_api_key: Optional[str] = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_base_url: Optional[str] = Field(default=None)
    completion_timeout: float = Field(default=30.0, gt=0)
    completion_max_retries: int = Field(default=2, ge=0)
    ai_temperature: float = Field(default=0.3)

    # Descriptions
    description_locale: str = Field(default="en")

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @property
    def description_deadline(self) -> float:
        """Upper bound for one node description across every attempt and backoff."""
        attempts = self.completion_max_retries + 1
        return self.completion_timeout * attempts + RETRY_BACKOFF_CAP * self.completion_max_retries

    @property
    def resolved_workspace_root(self) -> Optional[Path]:
        """Directory the indexed file paths are relative to."""
        if self.workspace_root is not None:
            return self.workspace_root
        if self.memory_bank_path is not None:
            return self.memory_bank_path.parent
        return None
