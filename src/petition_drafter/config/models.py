from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AppSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    export_dir: str = "data/exports"


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 5


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "data/logs/petition-drafter.log"
    rotation: FileRotationSettings = Field(default_factory=FileRotationSettings)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: FileLoggingSettings = Field(default_factory=FileLoggingSettings)


class BackendSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = "http://localhost:8000"
    # Prefix of the structured drafting API; the petition chat and feedback routes live under /api.
    api_prefix: str = "/api/v1"
    # None leaves the timeout to aiohttp's own default.
    request_timeout_seconds: Optional[float] = None


class SessionSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    history_window: int = Field(default=10, ge=0)
    feedback_notice_seconds: float = Field(default=3.0, gt=0)
    finalize_notes: str = "Approved for filing"
    default_case_type: str = "civil_revision"
    default_jurisdiction: str = "Lahore High Court"


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: str = "data/config/config.yaml"
    env_prefix: str = "PETITION__"
    dotenv_path: Optional[str] = ".env"
