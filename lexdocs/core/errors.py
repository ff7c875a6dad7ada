from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from lexdocs.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LexDocsError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Core types ----
class ConfigError(LexDocsError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ValidationError(LexDocsError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class CredentialStoreError(LexDocsError):
    def __init__(self, user_message: str = "Credential store error.", **ctx: Any):
        super().__init__("credential_store_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class AuthBackendError(LexDocsError):
    def __init__(self, user_message: str = "Authentication service unavailable.", **ctx: Any):
        super().__init__("auth_backend_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class NotAuthenticatedError(LexDocsError):
    def __init__(self, user_message: str = "Sign in required.", **ctx: Any):
        super().__init__("not_authenticated", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class PermissionDeniedError(LexDocsError):
    def __init__(self, user_message: str = "Permission denied.", **ctx: Any):
        super().__init__("permission_denied", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class NotFoundError(LexDocsError):
    def __init__(self, user_message: str = "Not found.", **ctx: Any):
        super().__init__("not_found", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


def normalize_exception(exc: BaseException, *, subsystem: str, context: Dict[str, Any] | None = None) -> LexDocsError:
    # Passthrough
    if isinstance(exc, LexDocsError):
        return exc

    msg = str(exc)
    ctx = dict(context or {})

    if subsystem == "config":
        return ConfigError("Configuration error.", error=msg, **ctx)
    if subsystem == "credential_store":
        return CredentialStoreError("Credential store error.", error=msg, **ctx)
    if subsystem == "auth_backend":
        return AuthBackendError("Authentication service unavailable.", error=msg, **ctx)
    if isinstance(exc, ValueError):
        return ValidationError("Invalid request.", error=msg, **ctx)

    # Generic safe error
    return LexDocsError(code="unknown_error", user_message="Something went wrong.", context=ctx)
