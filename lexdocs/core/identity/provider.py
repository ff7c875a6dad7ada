from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from lexdocs.core.errors import AuthBackendError, CredentialStoreError
from lexdocs.core.events import BaseEvent, EventSeverity, SourceSubsystem
from lexdocs.core.identity.backends import AuthBackend
from lexdocs.core.identity.models import SESSION_STORE_KEY, Role, Session, SessionRecordError
from lexdocs.core.identity.store import CredentialStore


class SessionTransition(str, Enum):
    restored = "restored"
    logged_in = "logged_in"
    registered = "registered"
    logged_out = "logged_out"


@dataclass(frozen=True)
class SessionChange:
    transition: SessionTransition
    session: Optional[Session]
    previous: Optional[Session] = None


SessionListener = Callable[[SessionChange], None]


def _filled(v: Any) -> bool:
    return isinstance(v, str) and bool(v.strip())


class SessionProvider:
    """
    Single source of truth for who is signed in and which role they hold.

    Lifecycle: construct -> restore() -> ready. `initializing` stays True until
    restore() has run once, so consumers can tell "not yet known" apart from
    "known to be signed out".

    restore/login/register/logout are serialized on one asyncio.Lock in call
    order. The in-memory session only changes after the credential store write
    has completed, so the two never disagree between operations.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        backend: AuthBackend,
        event_bus: Any = None,
        event_logger: Any = None,
        logger: Any = None,
        store_key: str = SESSION_STORE_KEY,
    ):
        self.store = store
        self.backend = backend
        self.event_bus = event_bus
        self.event_logger = event_logger
        self.logger = logger
        self.store_key = store_key

        self._session: Optional[Session] = None
        self._initializing = True
        self._listeners: List[SessionListener] = []
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    # ---- read API ----
    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def initializing(self) -> bool:
        return self._initializing

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def role(self) -> Optional[Role]:
        return self._session.role if self._session is not None else None

    def snapshot(self) -> Dict[str, Any]:
        s = self._session
        return {
            "initializing": self._initializing,
            "authenticated": s is not None,
            "session": s.to_record() if s is not None else None,
        }

    # ---- observers ----
    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        if not callable(listener):
            raise ValueError("listener must be callable")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    # ---- operations ----
    async def restore(self) -> Optional[Session]:
        async with self._guard():
            if not self._initializing:
                return self._session
            try:
                raw = await self.store.get(self.store_key)
                if raw is not None:
                    try:
                        self._session = Session.deserialize(raw)
                    except SessionRecordError as e:
                        self._log("warning", f"Discarding unreadable session record: {e}")
                        await self.store.delete(self.store_key)
                        self._audit("session.record_discarded", {"reason": "unparsable"})
            except CredentialStoreError as e:
                self._log("error", f"Session restore failed; starting signed out: {e.to_dict()}")
                self._session = None
            finally:
                self._initializing = False
            self._emit(SessionTransition.restored, self._session)
            return self._session

    async def login(self, email_address: str, password: str) -> bool:
        if not _filled(email_address) or not _filled(password):
            self._log("info", "Login rejected: email and password are required.")
            return False
        email_address = email_address.strip()
        async with self._guard():
            try:
                session = await self.backend.login(email_address, password)
            except AuthBackendError as e:
                self._log("warning", f"Login failed: {e.user_message}")
                self._audit("session.login_failed", {"code": e.code})
                return False
            return await self._commit(session, SessionTransition.logged_in)

    async def register(self, email_address: str, password: str, display_name: Optional[str] = None) -> bool:
        if not _filled(email_address) or not _filled(password):
            self._log("info", "Registration rejected: email and password are required.")
            return False
        email_address = email_address.strip()
        name = display_name.strip() if _filled(display_name) else None
        async with self._guard():
            try:
                session = await self.backend.register(email_address, password, name)
            except AuthBackendError as e:
                self._log("warning", f"Registration failed: {e.user_message}")
                self._audit("session.register_failed", {"code": e.code})
                return False
            if session.role != Role.standard_user:
                session = session.model_copy(update={"role": Role.standard_user})
            return await self._commit(session, SessionTransition.registered)

    async def logout(self) -> None:
        async with self._guard():
            previous = self._session
            failure: Optional[CredentialStoreError] = None
            try:
                await self.store.delete(self.store_key)
            except CredentialStoreError as e:
                failure = e
                self._log("error", f"Unable to delete stored session: {e.to_dict()}")
            self._session = None
            if previous is not None:
                self._emit(SessionTransition.logged_out, None, previous)
            if failure is not None:
                raise failure

    # ---- internals ----
    def _guard(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or (self._lock_loop is not loop and not self._lock.locked()):
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _commit(self, session: Session, transition: SessionTransition) -> bool:
        try:
            await self.store.set(self.store_key, session.serialize())
        except CredentialStoreError as e:
            self._log("error", f"Unable to persist session; keeping previous state: {e.to_dict()}")
            self._audit(f"session.{transition.value}_failed", {"code": e.code})
            return False
        previous = self._session
        self._session = session
        self._emit(transition, session, previous)
        return True

    def _emit(self, transition: SessionTransition, session: Optional[Session], previous: Optional[Session] = None) -> None:
        change = SessionChange(transition=transition, session=session, previous=previous)
        details = {
            "session_id": session.id if session is not None else None,
            "role": session.role.value if session is not None else None,
        }
        self._audit(f"session.{transition.value}", details)
        if self.event_bus is not None:
            self.event_bus.publish(
                BaseEvent(
                    event_type=f"session.{transition.value}",
                    trace_id=details["session_id"],
                    source_subsystem=SourceSubsystem.session,
                    severity=EventSeverity.INFO,
                    payload=details,
                )
            )
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:  # noqa: BLE001
                self._log("warning", f"Session listener {getattr(listener, '__name__', 'listener')} failed: {e}")

    def _audit(self, event_type: str, details: Dict[str, Any]) -> None:
        if self.event_logger is None:
            return
        try:
            self.event_logger.log(str(details.get("session_id") or "session"), event_type, details)
        except OSError as e:
            self._log("warning", f"Audit write failed for {event_type}: {e}")

    def _log(self, level: str, msg: str) -> None:
        if self.logger is not None:
            getattr(self.logger, level)(msg)
