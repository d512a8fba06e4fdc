"""Pydantic configuration models for task-resolver."""

import os
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared_types import Capability

VALID_BACKENDS = {"json", "http"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_ENV_VAR = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _check_score(v: int) -> int:
    if not 0 <= v <= 100:
        raise ValueError(f"Scores are 0-100, got {v}")
    return v


class MatchingConfig(BaseModel):
    """Score thresholds for resolving references."""

    auto_threshold: int = 90
    min_confidence: int = 70
    max_options: int = 5
    item_min_confidence: int = 50

    @field_validator("auto_threshold", "min_confidence", "item_min_confidence")
    @classmethod
    def validate_score(cls, v: int) -> int:
        return _check_score(v)

    @field_validator("max_options")
    @classmethod
    def validate_max_options(cls, v: int) -> int:
        if not 2 <= v <= 5:
            raise ValueError(f"max_options must be 2-5, got {v}")
        return v

    @model_validator(mode="after")
    def validate_order(self):
        if self.min_confidence > self.auto_threshold:
            raise ValueError(
                f"min_confidence ({self.min_confidence}) must not exceed auto_threshold ({self.auto_threshold})"
            )
        return self


class StoreConfig(BaseModel):
    """Where task records live."""

    backend: str = "json"
    path: Path = Path("~/taskresolver/tasks.json")
    base_url: str = "http://localhost:3000"
    timeout: float = 10.0

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_BACKENDS:
            raise ValueError(f"Invalid store backend: {v}. Must be one of {VALID_BACKENDS}")
        return v

    @model_validator(mode="after")
    def expand_path(self):
        self.path = self.path.expanduser()
        return self


class PathsConfig(BaseModel):
    """File paths owned by the CLI."""

    context_file: Path = Path("~/.taskresolver/pending.json")

    @model_validator(mode="after")
    def expand_paths(self):
        self.context_file = self.context_file.expanduser()
        return self


class RetryConfig(BaseModel):
    """Retry/backoff for the HTTP store."""

    max_attempts: int = 3
    min_wait: float = 0.5
    max_wait: float = 5.0

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_attempts must be at least 1, got {v}")
        return v


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    json_logs: bool = Field(default=False, alias="json")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class ResolverConfig(BaseModel):
    """Main configuration model."""

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    capabilities: list[Capability] = Field(default_factory=lambda: [Capability.TASKS, Capability.LISTS])

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in the store URL."""
        self.store.base_url = _ENV_VAR.sub(lambda m: os.getenv(m.group(1), ""), self.store.base_url)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "ResolverConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
