"""
Route guard: maps the provider's role onto a navigation menu, a landing path,
and allow/redirect decisions. Holds no session state of its own; it is
refreshed from SessionProvider notifications.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from lexdocs.core.identity.models import Role
from lexdocs.core.identity.provider import SessionChange, SessionProvider


LOGIN_PATH = "/login"
REGISTER_PATH = "/register"
ADMIN_ROOT = "/admin"
USER_ROOT = "/dashboard"


class NavItem(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    href: str
    icon: str


ADMIN_NAV_ITEMS: Tuple[NavItem, ...] = (
    NavItem(name="Chatbot", href="/admin/chat", icon="message-square"),
    NavItem(name="Ingest Files", href="/admin/ingest", icon="upload"),
    NavItem(name="User Accounts", href="/admin/users", icon="users"),
    NavItem(name="Settings", href="/admin/settings", icon="settings"),
)

USER_NAV_ITEMS: Tuple[NavItem, ...] = (
    NavItem(name="Chatbot", href="/dashboard/chat", icon="message-square"),
    NavItem(name="Categories", href="/dashboard/categories", icon="grid"),
    NavItem(name="Settings", href="/dashboard/settings", icon="settings"),
)


def menu_for(role: Role) -> List[NavItem]:
    return list(ADMIN_NAV_ITEMS if role == Role.admin else USER_NAV_ITEMS)


def landing_path_for(role: Role) -> str:
    return ADMIN_ROOT if role == Role.admin else USER_ROOT


def is_active_path(current: str, href: str) -> bool:
    return current == href or current.startswith(href + "/")


def _under(path: str, root: str) -> bool:
    return path == root or path.startswith(root + "/")


class GuardAction(str, Enum):
    pending = "pending"
    allow = "allow"
    redirect = "redirect"


class GuardDecision(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    action: GuardAction
    target: Optional[str] = None


class NavigationState(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    ready: bool = False
    authenticated: bool = False
    role: Optional[Role] = None
    display_name: Optional[str] = None
    menu: List[NavItem] = Field(default_factory=list)
    landing_path: Optional[str] = None


PENDING = NavigationState()


class RouteGuard:
    def __init__(self, provider: SessionProvider, *, logger=None):
        self.provider = provider
        self.logger = logger
        self._state = PENDING
        self._listeners: List[Callable[[NavigationState], None]] = []
        self._unsubscribe = provider.subscribe(self._on_session_change)
        self.refresh()

    @property
    def state(self) -> NavigationState:
        return self._state

    def close(self) -> None:
        self._unsubscribe()

    def subscribe(self, listener: Callable[[NavigationState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def refresh(self) -> NavigationState:
        p = self.provider
        if p.initializing:
            new = PENDING
        elif p.session is None:
            new = NavigationState(ready=True, authenticated=False)
        else:
            s = p.session
            new = NavigationState(
                ready=True,
                authenticated=True,
                role=s.role,
                display_name=s.label(),
                menu=menu_for(s.role),
                landing_path=landing_path_for(s.role),
            )
        changed = new != self._state
        self._state = new
        if changed:
            for listener in list(self._listeners):
                try:
                    listener(new)
                except Exception as e:  # noqa: BLE001
                    if self.logger is not None:
                        self.logger.warning(f"Navigation listener failed: {e}")
        return new

    def resolve(self, path: str) -> GuardDecision:
        st = self._state
        if not st.ready:
            return GuardDecision(action=GuardAction.pending)
        path = "/" + str(path or "").strip().lstrip("/")
        if len(path) > 1:
            path = path.rstrip("/")
        if not st.authenticated:
            if _under(path, ADMIN_ROOT) or _under(path, USER_ROOT):
                return GuardDecision(action=GuardAction.redirect, target=LOGIN_PATH)
            return GuardDecision(action=GuardAction.allow)
        if path in (LOGIN_PATH, REGISTER_PATH):
            return GuardDecision(action=GuardAction.redirect, target=st.landing_path)
        if st.role == Role.admin and _under(path, USER_ROOT):
            return GuardDecision(action=GuardAction.redirect, target=ADMIN_ROOT)
        if st.role != Role.admin and _under(path, ADMIN_ROOT):
            return GuardDecision(action=GuardAction.redirect, target=USER_ROOT)
        return GuardDecision(action=GuardAction.allow)

    def redirect_after_login(self) -> Optional[str]:
        st = self._state
        if not st.ready or not st.authenticated:
            return None
        return st.landing_path

    def redirect_after_logout(self) -> str:
        return LOGIN_PATH

    def _on_session_change(self, change: SessionChange) -> None:
        self.refresh()
