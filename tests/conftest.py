from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

import pytest

from lexdocs.core.config.manager import ConfigManager
from lexdocs.core.config.paths import ConfigFsPaths
from lexdocs.core.errors import AuthBackendError, CredentialStoreError
from lexdocs.core.identity import DemoAuthBackend, InMemoryCredentialStore, SessionProvider


class DummyLogger:
    def __init__(self):
        self.records: List[tuple] = []

    def info(self, msg, *_a, **_k):
        self.records.append(("info", str(msg)))

    def warning(self, msg, *_a, **_k):
        self.records.append(("warning", str(msg)))

    def error(self, msg, *_a, **_k):
        self.records.append(("error", str(msg)))


class FlakyStore(InMemoryCredentialStore):
    """In-memory store whose operations can be told to fail."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__(initial)
        self.fail_get = False
        self.fail_set = False
        self.fail_delete = False

    async def get(self, key: str) -> Optional[str]:
        if self.fail_get:
            raise CredentialStoreError("Unable to read credential store.")
        return await super().get(key)

    async def set(self, key: str, record: str) -> None:
        if self.fail_set:
            raise CredentialStoreError("Unable to write credential store.")
        await super().set(key, record)

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise CredentialStoreError("Unable to delete credential record.")
        await super().delete(key)


class RejectingBackend:
    async def login(self, email_address: str, password: str):
        raise AuthBackendError("Invalid credentials.")

    async def register(self, email_address: str, password: str, display_name=None):
        raise AuthBackendError("Invalid credentials.")


def read_jsonl(path: str) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    if not os.path.exists(path):
        return out
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                out.append(json.loads(line))
    return out


@pytest.fixture
def logger():
    return DummyLogger()


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def provider(store, logger):
    return SessionProvider(store=store, backend=DemoAuthBackend(logger=logger), logger=logger)


@pytest.fixture
def tmp_config_root(tmp_path):
    """Isolated root with config/ under tmp_path."""
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    return fs


@pytest.fixture
def config_manager(tmp_config_root, logger):
    cm = ConfigManager(fs=tmp_config_root, logger=logger, read_only=False)
    cm.load_all()
    return cm
