"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in sync code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    DatabaseSchema     → database.yaml
    StorageSchema      → storage.yaml
    LoggingSchema      → logging.yaml
    FeaturesSchema     → features.yaml
    SyncSchema         → sync.yaml
    EventsSchema       → events.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ContextSchema(_StrictBase):
    name: str
    main: bool


class TimeoutsSchema(_StrictBase):
    remote: float = Field(gt=0)
    authentication: float = Field(gt=0)


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    context: ContextSchema
    timeouts: TimeoutsSchema


# =============================================================================
# database.yaml
# =============================================================================


class RedisSchema(_StrictBase):
    host: str
    port: int
    db: int


class DatabaseSchema(_StrictBase):
    path: str
    echo: bool
    redis: RedisSchema


# =============================================================================
# storage.yaml
# =============================================================================


class StorageSchema(_StrictBase):
    backend: Literal["auto", "sql", "json"]
    json_path: str


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    sync_enabled: bool
    sync_on_mutation: bool
    events_redis_enabled: bool


# =============================================================================
# sync.yaml
# =============================================================================


class TriggerSchema(_StrictBase):
    rerun_if_requested: bool


class RetrySchema(_StrictBase):
    max_attempts: int = Field(ge=1)
    backoff_multiplier: float
    backoff_max: float


class CircuitBreakerSchema(_StrictBase):
    fail_max: int = Field(ge=1)
    timeout_duration: int


class SyncSchema(_StrictBase):
    object_name: str
    provider: Literal["google_drive", "memory"]
    trigger: TriggerSchema
    retry: RetrySchema
    circuit_breaker: CircuitBreakerSchema


# =============================================================================
# events.yaml
# =============================================================================


class EventsSchema(_StrictBase):
    sync_request_channel: str
