from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Protocol

import requests

from lexdocs.core.errors import AuthBackendError
from lexdocs.core.identity.models import Role, Session, SessionRecordError, build_session, default_display_name, derive_role


class AuthBackend(Protocol):
    async def login(self, email_address: str, password: str) -> Session: ...

    async def register(self, email_address: str, password: str, display_name: Optional[str] = None) -> Session: ...


class DemoAuthBackend:
    """
    Reference mock: accepts any password, derives the role from the email.

    Must be replaced by a verifying backend before any real deployment.
    """

    name = "demo"

    def __init__(self, *, logger=None):
        self.logger = logger
        self._warned = False

    def _warn_once(self) -> None:
        if self._warned:
            return
        self._warned = True
        if self.logger is not None:
            self.logger.warning("Demo auth backend in use: passwords are NOT verified and roles are derived from email.")

    async def login(self, email_address: str, password: str) -> Session:
        self._warn_once()
        return build_session(email_address, role=derive_role(email_address))

    async def register(self, email_address: str, password: str, display_name: Optional[str] = None) -> Session:
        self._warn_once()
        # registration never grants admin
        return build_session(email_address, role=Role.standard_user, display_name=display_name)


class RemoteAuthBackend:
    """
    JSON-over-HTTP backend: POST {base_url}/login and POST {base_url}/register.

    The response body is the session record itself or {"user": record}; the
    role in the payload is taken as issued.
    """

    name = "remote"

    def __init__(self, *, base_url: str, timeout_seconds: float = 10.0, session: Optional[requests.Session] = None, logger=None):
        if not str(base_url or "").strip():
            raise ValueError("base_url required")
        self.base_url = str(base_url).rstrip("/")
        self.timeout_seconds = float(timeout_seconds)
        self.http = session or requests.Session()
        self.logger = logger

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def login(self, email_address: str, password: str) -> Session:
        body = {"email": email_address, "password": password}
        payload = await asyncio.to_thread(self._post, "/login", body)
        return self._to_session(payload, email_address=email_address)

    async def register(self, email_address: str, password: str, display_name: Optional[str] = None) -> Session:
        body: Dict[str, Any] = {"email": email_address, "password": password}
        if display_name:
            body["name"] = display_name
        payload = await asyncio.to_thread(self._post, "/register", body)
        return self._to_session(payload, email_address=email_address)

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.http.post(self._url(path), json=body, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise AuthBackendError("Authentication service unreachable.", path=path, error=str(e)) from e
        if r.status_code in (401, 403):
            raise AuthBackendError("Invalid credentials.", path=path, status=r.status_code)
        if not (200 <= r.status_code < 300):
            raise AuthBackendError("Authentication service error.", path=path, status=r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise AuthBackendError("Authentication service returned invalid JSON.", path=path) from e
        if not isinstance(data, dict):
            raise AuthBackendError("Authentication service returned an unexpected payload.", path=path)
        return data

    def _to_session(self, payload: Dict[str, Any], *, email_address: str) -> Session:
        rec = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        rec = dict(rec)
        # accept both the stored-record shape and the backend's {email, name} shape
        if "emailAddress" not in rec and "email" in rec:
            rec["emailAddress"] = rec.pop("email")
        if "displayName" not in rec and "name" in rec:
            rec["displayName"] = rec.pop("name")
        rec.setdefault("emailAddress", email_address)
        if rec.get("id") is not None:
            rec["id"] = str(rec["id"])
        if not rec.get("displayName"):
            rec["displayName"] = default_display_name(str(rec["emailAddress"]))
        known = {"id", "emailAddress", "role", "displayName"}
        try:
            return Session.from_record({k: v for k, v in rec.items() if k in known})
        except SessionRecordError as e:
            raise AuthBackendError("Authentication service returned a malformed session.", error=str(e)) from e
