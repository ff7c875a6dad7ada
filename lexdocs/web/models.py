from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=512)


class RegisterRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=512)
    name: Optional[str] = Field(default=None, max_length=120)


class AuthResponse(BaseModel):
    ok: bool
    session: Optional[Dict[str, Any]] = None
    redirect: Optional[str] = None


class SessionResponse(BaseModel):
    initializing: bool
    authenticated: bool
    session: Optional[Dict[str, Any]] = None


class QueryRequest(BaseModel):
    query: str = Field(min_length=1, max_length=4000)


class QueryResponse(BaseModel):
    id: str
    content: str
    role: str
    timestamp: float


class FeedbackRequest(BaseModel):
    feedback: str = Field(min_length=1, max_length=4000)


class FeedbackResponse(BaseModel):
    ok: bool
    message_id: str


class NavigationResponse(BaseModel):
    state: Dict[str, Any]
    decision: Optional[Dict[str, Any]] = None


class FeedbackListResponse(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)


class FeedbackStatusRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)


class FeedbackStatusResponse(BaseModel):
    ok: bool
    item: Dict[str, Any]
