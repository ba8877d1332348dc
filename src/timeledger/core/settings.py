"""Centralized application configuration using Pydantic Settings (v2).

This module exposes `load_settings()`, which builds and caches one `Settings`
instance from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod

The instance is created once at process start (API factory, CLI callback) and
handed to every component explicitly. Components never read `os.environ`.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ImageFormat = Literal["webp", "png", "jpeg"]

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class Mode(str, Enum):
    """Deployment variant.

    LIVE writes to the hosted repository. DEMO keeps every write in a volatile
    in-memory store so the form can be exercised without a hosting token.
    """

    LIVE = "live"
    DEMO = "demo"


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `TIMELEDGER_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    mode : Mode
        `live` or `demo`; maps from `TIMELEDGER_MODE`.
    github_token, github_username, github_repo, github_branch
        Target repository coordinates and credential for the contents API.
    csv_path, images_path
        Location of the tabular file and of the image collection in the repository.
    auth_enabled, auth_username, auth_password
        Shared-secret pair checked by the access gate.
    append_retries : int
        Extra read-modify-write attempts after a revision conflict on the CSV.
    """

    environment: EnvName = Field(default="dev", alias="TIMELEDGER_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    mode: Mode = Field(default=Mode.LIVE, alias="TIMELEDGER_MODE")

    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")
    github_username: str | None = Field(default=None, alias="GITHUB_USERNAME")
    github_repo: str | None = Field(default=None, alias="GITHUB_REPO")
    github_branch: str = Field(default="main", alias="GITHUB_BRANCH")
    github_api_url: str = Field(default="https://api.github.com", alias="GITHUB_API_URL")
    raw_base_url: str = Field(default="https://raw.githubusercontent.com", alias="GITHUB_RAW_URL")
    http_timeout_seconds: float = Field(default=15.0, gt=0, alias="HTTP_TIMEOUT_SECONDS")

    csv_path: str = Field(default="timeline-data.csv", alias="CSV_PATH")
    images_path: str = Field(default="images", alias="IMAGES_PATH")
    image_format: ImageFormat = Field(default="webp", alias="IMAGE_FORMAT")
    image_quality: int = Field(default=80, ge=1, le=100, alias="IMAGE_QUALITY")
    image_fallback_to_original: bool = Field(default=True, alias="IMAGE_FALLBACK_TO_ORIGINAL")
    append_retries: int = Field(default=3, ge=0, le=10, alias="APPEND_RETRIES")

    auth_enabled: bool = Field(default=True, alias="AUTH_ENABLED")
    auth_username: str | None = Field(default=None, alias="AUTH_USERNAME")
    auth_password: str | None = Field(default=None, alias="AUTH_PASSWORD")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _check_required_secrets(self) -> Settings:
        """Refuse to start with a half-configured live deployment or gate."""
        if self.mode is Mode.LIVE:
            missing = [
                name
                for name, value in (
                    ("GITHUB_TOKEN", self.github_token),
                    ("GITHUB_USERNAME", self.github_username),
                    ("GITHUB_REPO", self.github_repo),
                )
                if not value
            ]
            if missing:
                raise ValueError(
                    f"live mode requires {', '.join(missing)}; set TIMELEDGER_MODE=demo to run without them"
                )
        if self.auth_enabled and not (self.auth_username and self.auth_password):
            raise ValueError("AUTH_USERNAME and AUTH_PASSWORD must be set when AUTH_ENABLED is true")
        return self

    @property
    def is_live(self) -> bool:
        """Return True if writes go to the hosted repository."""
        return self.mode is Mode.LIVE

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    @property
    def repo_api_url(self) -> str:
        """Base URL of the repository resource on the contents API."""
        return f"{self.github_api_url.rstrip('/')}/repos/{self.github_username}/{self.github_repo}"

    def public_url(self, path: str) -> str:
        """Return the raw-content URL serving `path` from the configured branch."""
        owner = self.github_username or "demo"
        repo = self.github_repo or "timeline"
        return f"{self.raw_base_url.rstrip('/')}/{owner}/{repo}/{self.github_branch}/{path}"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    We keep this behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    os.environ.setdefault("TIMELEDGER_ENV", "dev")
    return Settings()


def get_logger(name: str = "timeledger", level: int | None = None) -> logging.Logger:
    """Return a process-global logger with the shared formatter attached.

    `level` is normally `settings.log_level_numeric()`; when omitted the logger
    inherits whatever level was configured last.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    logger.propagate = False
    return logger


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply `settings.log_level` to the package root logger and return it."""
    return get_logger("timeledger", settings.log_level_numeric())
