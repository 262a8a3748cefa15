"""Settings for the glossary backend.

Values come from environment variables prefixed with ``GLOSSARY_`` or from a
local ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional, Set

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALLOWED_TERMS = {
    "adoc",
    "gimlet",
    "sidecar",
    "nexus",
    "helios",
    "crucible",
    "omicron",
    "sled",
}


class Settings(BaseSettings):
    """Runtime configuration for the glossary service."""

    model_config = SettingsConfigDict(
        env_prefix="GLOSSARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Run FastAPI in debug mode (tracebacks in 500 responses)")
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    glossary_dir: Path = Field(
        default=Path("glossary.d"),
        description="Directory tree holding one JSON file per glossary term",
    )
    allowed_terms: Optional[Set[str]] = Field(
        default_factory=lambda: set(DEFAULT_ALLOWED_TERMS),
        description="Term names published on the page; null publishes every public term",
    )

    rfd_mode: Literal["local", "remote"] = Field(
        default="local",
        description="Read RFDs from a local checkout or from the RFD API",
    )
    rfd_local_dir: Path = Field(
        default=Path("rfd"),
        description="Root of a local RFD checkout (<root>/<NNNN>/README.adoc)",
    )
    rfd_api_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the remote RFD API",
    )
    rfd_api_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout in seconds for the remote RFD API",
    )

    host: str = Field(default="127.0.0.1", description="Bind address for uvicorn")
    port: int = Field(default=8000, description="Bind port for uvicorn")

    @field_validator("allowed_terms")
    @classmethod
    def _lowercase_terms(cls, value: Optional[Set[str]]) -> Optional[Set[str]]:
        if value is None:
            return None
        return {str(term).strip().lower() for term in value if str(term).strip()}


@lru_cache()
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return Settings()
