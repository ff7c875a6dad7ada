from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Optional

import uvicorn

from lexdocs.core.assistant import LegalAssistant
from lexdocs.core.config import AppConfig, AuthBackendKind, ConfigFsPaths, ConfigManager, CredentialStoreKind
from lexdocs.core.error_reporter import ErrorReporter
from lexdocs.core.errors import LexDocsError
from lexdocs.core.events import EventBus, EventLogger
from lexdocs.core.identity import (
    CredentialStore,
    DemoAuthBackend,
    FileCredentialStore,
    InMemoryCredentialStore,
    RemoteAuthBackend,
    SessionProvider,
)
from lexdocs.core.logger import setup_logging
from lexdocs.core.navigation import RouteGuard
from lexdocs.web.api import create_app


@dataclass
class Services:
    config: AppConfig
    logger: Any
    event_logger: EventLogger
    event_bus: EventBus
    provider: SessionProvider
    guard: RouteGuard
    assistant: LegalAssistant
    error_reporter: ErrorReporter


def build_store(cfg: AppConfig, *, root: str = ".") -> CredentialStore:
    if cfg.auth.store == CredentialStoreKind.memory:
        return InMemoryCredentialStore()
    store_dir = cfg.auth.store_dir
    if not os.path.isabs(store_dir):
        store_dir = os.path.join(root, store_dir)
    return FileCredentialStore(store_dir)


def build_backend(cfg: AppConfig, *, logger=None):
    if cfg.auth.backend == AuthBackendKind.remote:
        return RemoteAuthBackend(base_url=str(cfg.auth.remote_base_url), timeout_seconds=cfg.auth.remote_timeout_seconds, logger=logger)
    return DemoAuthBackend(logger=logger)


def build_services(*, root: str = ".", console_logging: bool = True) -> Services:
    cm = ConfigManager(fs=ConfigFsPaths(root=root))
    cfg = cm.load_all()
    logger = setup_logging(os.path.join(root, cfg.logging.log_dir), console=console_logging)
    cm.logger = logger

    event_logger = EventLogger(os.path.join(root, cfg.logging.events_path))
    event_bus = EventBus(logger=logger)
    provider = SessionProvider(
        store=build_store(cfg, root=root),
        backend=build_backend(cfg, logger=logger),
        event_bus=event_bus,
        event_logger=event_logger,
        logger=logger,
    )
    guard = RouteGuard(provider, logger=logger)
    return Services(
        config=cfg,
        logger=logger,
        event_logger=event_logger,
        event_bus=event_bus,
        provider=provider,
        guard=guard,
        assistant=LegalAssistant(logger=logger),
        error_reporter=ErrorReporter(path=os.path.join(root, cfg.logging.errors_path)),
    )


def _print(obj: Any) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


async def _run_command(args: argparse.Namespace, svc: Services) -> int:
    provider = svc.provider
    await provider.restore()

    if args.command == "status":
        _print({"session": provider.snapshot(), "navigation": svc.guard.state.model_dump(mode="json")})
        return 0

    if args.command == "logout":
        await provider.logout()
        print(f"Signed out. Next: {svc.guard.redirect_after_logout()}")
        return 0

    if args.command in ("login", "register"):
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        if args.command == "login":
            ok = await provider.login(args.email, password)
        else:
            ok = await provider.register(args.email, password, args.name)
        if not ok:
            print("Authentication failed. Please check your credentials and try again.", file=sys.stderr)
            return 1
        s = provider.session
        print(f"Signed in as {s.label()} ({s.role.value}). Next: {svc.guard.redirect_after_login()}")
        return 0

    if args.command == "ask":
        if provider.session is None:
            print("Sign in required.", file=sys.stderr)
            return 1
        print(svc.assistant.respond(" ".join(args.query)).content)
        return 0

    raise ValueError(f"unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="LexDocs legal document assistant (local)")
    ap.add_argument("--root", default=".", help="Directory holding config/, logs/ and runtime/.")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("serve", help="Run the local web API.")
    sp.add_argument("--host", default=None)
    sp.add_argument("--port", type=int, default=None)

    lp = sub.add_parser("login", help="Sign in.")
    lp.add_argument("email")
    lp.add_argument("--password", default=None, help="Prompted when omitted.")

    rp = sub.add_parser("register", help="Create an account and sign in.")
    rp.add_argument("email")
    rp.add_argument("--password", default=None, help="Prompted when omitted.")
    rp.add_argument("--name", default=None)

    sub.add_parser("logout", help="Sign out.")
    sub.add_parser("status", help="Show the current session and navigation.")

    qp = sub.add_parser("ask", help="Ask the legal document assistant.")
    qp.add_argument("query", nargs="+")

    args = ap.parse_args(argv)

    try:
        svc = build_services(root=args.root, console_logging=(args.command == "serve"))
    except LexDocsError as e:
        print(f"Startup failed: {e.user_message}", file=sys.stderr)
        return 2

    if args.command == "serve":
        web = svc.config.web
        app = create_app(
            provider=svc.provider,
            guard=svc.guard,
            assistant=svc.assistant,
            event_logger=svc.event_logger,
            logger=svc.logger,
            error_reporter=svc.error_reporter,
            allowed_origins=list(web.allowed_origins),
        )
        host = args.host or web.bind_host
        port = int(args.port or web.port)
        svc.logger.info(f"Web server starting on http://{host}:{port}")
        uvicorn.run(app, host=host, port=port, log_level="info")
        return 0

    try:
        return asyncio.run(_run_command(args, svc))
    except LexDocsError as e:
        print(e.user_message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
