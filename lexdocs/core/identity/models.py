from __future__ import annotations

import json
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


# Key under which the single session record lives in the credential store.
SESSION_STORE_KEY = "user"


class Role(str, Enum):
    admin = "admin"
    standard_user = "standard-user"


class SessionRecordError(ValueError):
    """Stored session record could not be parsed into a Session."""


def derive_role(email_address: str) -> Role:
    """
    Placeholder rule: any address containing "admin" (case-sensitive) is an admin.

    Not an authorization boundary. A real deployment takes the role from a
    verified claim returned by the auth backend.
    """
    return Role.admin if "admin" in str(email_address) else Role.standard_user


def default_display_name(email_address: str) -> str:
    return str(email_address).split("@", 1)[0]


def new_session_id() -> str:
    return uuid.uuid4().hex


class Session(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_session_id, min_length=1)
    email_address: str = Field(alias="emailAddress", min_length=1)
    role: Role
    display_name: Optional[str] = Field(default=None, alias="displayName")

    @field_validator("role", mode="before")
    @classmethod
    def _legacy_role(cls, v: Any) -> Any:
        # records written by the browser client used "user"
        if v == "user":
            return Role.standard_user
        return v

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin

    def label(self) -> str:
        return self.display_name or self.email_address

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def serialize(self) -> str:
        return json.dumps(self.to_record(), ensure_ascii=False, sort_keys=True)

    @classmethod
    def from_record(cls, obj: Any) -> "Session":
        if not isinstance(obj, dict):
            raise SessionRecordError("session record must be an object")
        try:
            return cls.model_validate(obj)
        except ValidationError as e:
            raise SessionRecordError(str(e)) from e

    @classmethod
    def deserialize(cls, raw: str) -> "Session":
        try:
            obj = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise SessionRecordError(f"corrupt_json:{e}") from e
        return cls.from_record(obj)


def build_session(email_address: str, *, role: Role, display_name: Optional[str] = None) -> Session:
    return Session(
        id=new_session_id(),
        email_address=email_address,
        role=role,
        display_name=display_name or default_display_name(email_address),
    )
