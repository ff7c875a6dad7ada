"""
Session & authorization core.

`SessionProvider` owns the single in-memory session and mirrors it into a
`CredentialStore`. Roles come from the auth backend; the demo backend derives
them from the email address and must not be treated as real authentication.
"""

from lexdocs.core.identity.backends import AuthBackend, DemoAuthBackend, RemoteAuthBackend
from lexdocs.core.identity.models import SESSION_STORE_KEY, Role, Session, SessionRecordError, default_display_name, derive_role
from lexdocs.core.identity.provider import SessionChange, SessionProvider, SessionTransition
from lexdocs.core.identity.store import CredentialStore, FileCredentialStore, InMemoryCredentialStore

__all__ = [
    "AuthBackend",
    "DemoAuthBackend",
    "RemoteAuthBackend",
    "SESSION_STORE_KEY",
    "Role",
    "Session",
    "SessionRecordError",
    "default_display_name",
    "derive_role",
    "SessionChange",
    "SessionProvider",
    "SessionTransition",
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
]
