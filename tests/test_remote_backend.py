from __future__ import annotations

import asyncio

import pytest
import requests

from lexdocs.core.errors import AuthBackendError
from lexdocs.core.identity import RemoteAuthBackend, Role


class FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("no json")
        return self._payload


class FakeHttp:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, json=None, timeout=None):  # noqa: A002
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


def _backend(http):
    return RemoteAuthBackend(base_url="https://auth.example.com/api/", timeout_seconds=3, session=http)


def test_login_posts_credentials_and_maps_record():
    http = FakeHttp(FakeResponse(payload={"id": 42, "email": "sarah@example.com", "role": "standard-user", "name": "Sarah"}))
    s = asyncio.run(_backend(http).login("sarah@example.com", "pw"))
    assert http.calls == [{"url": "https://auth.example.com/api/login", "json": {"email": "sarah@example.com", "password": "pw"}, "timeout": 3.0}]
    assert s.id == "42"
    assert s.role == Role.standard_user
    assert s.display_name == "Sarah"


def test_role_is_taken_from_backend_not_email():
    http = FakeHttp(FakeResponse(payload={"user": {"id": "1", "emailAddress": "admin@example.com", "role": "standard-user"}}))
    s = asyncio.run(_backend(http).login("admin@example.com", "pw"))
    assert s.role == Role.standard_user
    assert s.display_name == "admin"


def test_register_sends_name():
    http = FakeHttp(FakeResponse(payload={"id": "9", "emailAddress": "n@x.io", "role": "standard-user"}))
    asyncio.run(_backend(http).register("n@x.io", "pw", "Nia"))
    assert http.calls[0]["url"].endswith("/register")
    assert http.calls[0]["json"]["name"] == "Nia"


@pytest.mark.parametrize(
    "http",
    [
        FakeHttp(exc=requests.ConnectionError("down")),
        FakeHttp(FakeResponse(status_code=401)),
        FakeHttp(FakeResponse(status_code=500)),
        FakeHttp(FakeResponse(bad_json=True)),
        FakeHttp(FakeResponse(payload=["not", "an", "object"])),
        FakeHttp(FakeResponse(payload={"id": "1", "emailAddress": "a@b.c", "role": "owner"})),
    ],
)
def test_failures_raise_auth_backend_error(http):
    with pytest.raises(AuthBackendError):
        asyncio.run(_backend(http).login("a@b.c", "pw"))


def test_base_url_required():
    with pytest.raises(ValueError):
        RemoteAuthBackend(base_url="  ")
