from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lexdocs.core.assistant import LegalAssistant
from lexdocs.core.error_reporter import ErrorReporter
from lexdocs.core.errors import LexDocsError, NotAuthenticatedError, PermissionDeniedError, ValidationError
from lexdocs.core.identity.provider import SessionProvider
from lexdocs.core.navigation import RouteGuard
from lexdocs.web.models import (
    AuthResponse,
    FeedbackListResponse,
    FeedbackRequest,
    FeedbackStatusRequest,
    FeedbackStatusResponse,
    FeedbackResponse,
    LoginRequest,
    NavigationResponse,
    QueryRequest,
    QueryResponse,
    RegisterRequest,
    SessionResponse,
)


STATUS_BY_CODE = {
    "validation_error": 400,
    "not_authenticated": 401,
    "permission_denied": 403,
    "not_found": 404,
    "auth_backend_error": 502,
}


def _trace_id(request: Request) -> str:
    return getattr(getattr(request, "state", None), "trace_id", "web")


def create_app(
    *,
    provider: SessionProvider,
    guard: RouteGuard,
    assistant: LegalAssistant,
    event_logger=None,
    logger=None,
    error_reporter: Optional[ErrorReporter] = None,
    allowed_origins: list[str] | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        await provider.restore()
        if logger is not None:
            who = provider.session.label() if provider.session is not None else "nobody"
            logger.info(f"Session restored: {who}")
        yield

    app = FastAPI(title="LexDocs", version="0.1.0", lifespan=lifespan)

    if allowed_origins:
        if any(o == "*" for o in allowed_origins):
            raise ValueError("Wildcard CORS origins are not allowed.")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )

    @app.middleware("http")
    async def trace_middleware(request: Request, call_next):  # noqa: ANN001
        trace_id = uuid.uuid4().hex
        request.state.trace_id = trace_id
        if event_logger is not None:
            event_logger.log(trace_id, "web.request", {"path": request.url.path, "method": request.method})
        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(LexDocsError)
    async def lexdocs_error_handler(request: Request, exc: LexDocsError):
        if error_reporter is not None:
            error_reporter.write_error(exc, trace_id=_trace_id(request), subsystem="web")
        code = STATUS_BY_CODE.get(exc.code, 500)
        return JSONResponse(status_code=code, content={"detail": exc.user_message, "code": exc.code})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        if error_reporter is not None:
            error_reporter.write_error(ValidationError("Invalid request.", errors=str(exc.errors())[:2000]), trace_id=_trace_id(request), subsystem="web")
        return JSONResponse(status_code=400, content={"detail": "Invalid request.", "code": "validation_error"})

    def _require_session():
        s = provider.session
        if s is None:
            raise NotAuthenticatedError()
        return s

    def _require_admin():
        s = _require_session()
        if not s.is_admin:
            raise PermissionDeniedError("Admin access required.")
        return s

    @app.get("/health")
    async def health():
        return {"status": "ok", "initializing": provider.initializing}

    # ---- session ----
    @app.post("/api/login", response_model=AuthResponse)
    async def login(req: LoginRequest):
        ok = await provider.login(req.email, req.password)
        if not ok:
            raise NotAuthenticatedError("Authentication failed. Please check your credentials and try again.")
        return AuthResponse(ok=True, session=provider.session.to_record(), redirect=guard.redirect_after_login())

    @app.post("/api/register", response_model=AuthResponse)
    async def register(req: RegisterRequest):
        ok = await provider.register(req.email, req.password, req.name)
        if not ok:
            raise ValidationError("Registration failed. Please try again.")
        return AuthResponse(ok=True, session=provider.session.to_record(), redirect=guard.redirect_after_login())

    @app.post("/api/logout", response_model=AuthResponse)
    async def logout():
        await provider.logout()
        return AuthResponse(ok=True, session=None, redirect=guard.redirect_after_logout())

    @app.get("/api/session", response_model=SessionResponse)
    async def session():
        return SessionResponse(**provider.snapshot())

    @app.get("/api/navigation", response_model=NavigationResponse)
    async def navigation(path: Optional[str] = None):
        decision = guard.resolve(path).model_dump(mode="json") if path is not None else None
        return NavigationResponse(state=guard.state.model_dump(mode="json"), decision=decision)

    # ---- assistant ----
    @app.get("/api/chat/greeting", response_model=QueryResponse)
    async def greeting():
        _require_session()
        return QueryResponse(**assistant.greeting().model_dump())

    @app.post("/api/query", response_model=QueryResponse)
    async def query(req: QueryRequest):
        _require_session()
        return QueryResponse(**assistant.respond(req.query).model_dump())

    @app.post("/api/feedback/{message_id}", response_model=FeedbackResponse)
    async def feedback(message_id: str, req: FeedbackRequest):
        s = _require_session()
        rec = assistant.submit_feedback(s.id, message_id, req.feedback, user_email=s.email_address, user_name=s.label())
        return FeedbackResponse(ok=True, message_id=rec.message_id)

    # ---- admin ----
    @app.get("/api/admin/feedback", response_model=FeedbackListResponse)
    async def admin_feedback():
        _require_admin()
        return FeedbackListResponse(items=[r.model_dump(mode="json") for r in assistant.all_feedback()])

    @app.post("/api/admin/feedback/{feedback_id}/status", response_model=FeedbackStatusResponse)
    async def admin_feedback_status(feedback_id: str, req: FeedbackStatusRequest):
        _require_admin()
        rec = assistant.update_feedback_status(feedback_id, req.status)
        return FeedbackStatusResponse(ok=True, item=rec.model_dump(mode="json"))

    return app
