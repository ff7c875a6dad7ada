from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AppFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    created_at: str = "1970-01-01T00:00:00Z"
    backups: Dict[str, Any] = Field(default_factory=lambda: {"max_backups_per_file": 10})


class AuthBackendKind(str, Enum):
    demo = "demo"
    remote = "remote"


class CredentialStoreKind(str, Enum):
    file = "file"
    memory = "memory"


class AuthConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    backend: AuthBackendKind = AuthBackendKind.demo
    remote_base_url: Optional[str] = None
    remote_timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    store: CredentialStoreKind = CredentialStoreKind.file
    store_dir: str = "runtime/credentials"

    @model_validator(mode="after")
    def _remote_needs_url(self) -> "AuthConfig":
        if self.backend == AuthBackendKind.remote and not (self.remote_base_url or "").strip():
            raise ValueError("remote_base_url required when backend is 'remote'")
        return self


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    bind_host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    @field_validator("allowed_origins")
    @classmethod
    def _no_wildcard(cls, v: List[str]) -> List[str]:
        if any(o == "*" for o in v):
            raise ValueError("Wildcard CORS origins are not allowed.")
        return v


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    log_dir: str = "logs"
    events_path: str = "logs/events.jsonl"
    errors_path: str = "logs/errors.jsonl"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    app: AppFileConfig
    auth: AuthConfig
    web: WebConfig
    logging: LoggingConfig
