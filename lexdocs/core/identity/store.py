"""
Credential stores: persistent key-value storage holding at most one serialized session.

All methods are coroutines so the provider can await durability. File I/O runs
in a worker thread.
"""

from __future__ import annotations

import asyncio
import os
import re
from typing import Dict, Optional, Protocol

from lexdocs.core.config.io import atomic_write_text, ensure_dirs
from lexdocs.core.errors import CredentialStoreError


_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


class CredentialStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, record: str) -> None: ...

    async def delete(self, key: str) -> None: ...


def _check_key(key: str) -> str:
    key = str(key or "")
    if not _KEY_RE.match(key) or key.startswith("."):
        raise CredentialStoreError("Invalid credential store key.", key=key)
    return key


class InMemoryCredentialStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(_check_key(key))

    async def set(self, key: str, record: str) -> None:
        if not isinstance(record, str):
            raise CredentialStoreError("Credential record must be a string.")
        self._data[_check_key(key)] = record

    async def delete(self, key: str) -> None:
        self._data.pop(_check_key(key), None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class FileCredentialStore:
    """One file per key under root_dir; writes are atomic and fsynced."""

    def __init__(self, root_dir: str):
        self.root_dir = str(root_dir)

    def path_for(self, key: str) -> str:
        return os.path.join(self.root_dir, f"{_check_key(key)}.json")

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def set(self, key: str, record: str) -> None:
        if not isinstance(record, str):
            raise CredentialStoreError("Credential record must be a string.")
        await asyncio.to_thread(self._write, self.path_for(key), record)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, self.path_for(key))

    # ---- blocking helpers ----
    @staticmethod
    def _read(path: str) -> Optional[str]:
        try:
            # undecodable bytes surface as a parse failure upstream, not a read error
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CredentialStoreError("Unable to read credential store.", path=path, error=str(e)) from e

    def _write(self, path: str, record: str) -> None:
        try:
            ensure_dirs(self.root_dir)
            atomic_write_text(path, record)
        except OSError as e:
            raise CredentialStoreError("Unable to write credential store.", path=path, error=str(e)) from e

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise CredentialStoreError("Unable to delete credential record.", path=path, error=str(e)) from e
