from __future__ import annotations

import asyncio
import os

import pytest

from lexdocs.core.errors import CredentialStoreError
from lexdocs.core.identity import FileCredentialStore, InMemoryCredentialStore


def test_file_store_set_get_delete(tmp_path):
    s = FileCredentialStore(str(tmp_path / "creds"))
    assert asyncio.run(s.get("user")) is None
    asyncio.run(s.set("user", '{"a": 1}'))
    assert asyncio.run(s.get("user")) == '{"a": 1}'
    assert os.path.exists(s.path_for("user"))
    asyncio.run(s.delete("user"))
    assert asyncio.run(s.get("user")) is None
    # deleting a missing key is a no-op
    asyncio.run(s.delete("user"))


def test_file_store_overwrite_leaves_no_temp_files(tmp_path):
    root = tmp_path / "creds"
    s = FileCredentialStore(str(root))
    asyncio.run(s.set("user", "first"))
    asyncio.run(s.set("user", "second"))
    assert asyncio.run(s.get("user")) == "second"
    assert sorted(os.listdir(root)) == ["user.json"]


def test_file_store_undecodable_bytes_are_returned_not_raised(tmp_path):
    s = FileCredentialStore(str(tmp_path))
    with open(s.path_for("user"), "wb") as f:
        f.write(b"\xff\xfe\x00garbage")
    raw = asyncio.run(s.get("user"))
    assert isinstance(raw, str)


@pytest.mark.parametrize("key", ["", "../etc/passwd", ".hidden", "a/b", "x" * 65])
def test_invalid_keys_rejected(tmp_path, key):
    s = FileCredentialStore(str(tmp_path))
    with pytest.raises(CredentialStoreError):
        asyncio.run(s.get(key))
    with pytest.raises(CredentialStoreError):
        asyncio.run(InMemoryCredentialStore().set(key, "x"))


def test_non_string_record_rejected():
    s = InMemoryCredentialStore()
    with pytest.raises(CredentialStoreError):
        asyncio.run(s.set("user", {"id": 1}))  # type: ignore[arg-type]


def test_file_store_write_failure_is_wrapped(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    s = FileCredentialStore(str(blocker))
    with pytest.raises(CredentialStoreError):
        asyncio.run(s.set("user", "x"))
