from __future__ import annotations

import json
import os

import pytest

from lexdocs.core.config import AuthBackendKind, ConfigManager, CredentialStoreKind
from lexdocs.core.errors import ConfigError


def test_missing_files_are_created_with_defaults(config_manager):
    fs = config_manager.fs
    for path in (fs.app, fs.auth, fs.web, fs.logging):
        assert os.path.exists(path)
    cfg = config_manager.get()
    assert cfg.auth.backend == AuthBackendKind.demo
    assert cfg.auth.store == CredentialStoreKind.file
    assert cfg.web.bind_host == "127.0.0.1"
    assert os.listdir(fs.last_known_good_dir)


def test_get_before_load_raises(tmp_config_root):
    with pytest.raises(ConfigError):
        ConfigManager(fs=tmp_config_root).get()


def test_corrupt_json_triggers_recovery_and_backup(config_manager):
    fs = config_manager.fs
    web = config_manager.get().web.model_dump()
    web["port"] = 8123
    config_manager.save_non_sensitive("web.json", web)

    with open(fs.web, "w", encoding="utf-8") as f:
        f.write("{not json")
    cfg = config_manager.load_all()
    backups = os.listdir(fs.backups_dir)
    assert any("web.json" in b and "corrupt" in b for b in backups)
    # restored from last known good
    assert cfg.web.port == 8123


def test_save_writes_valid_json(config_manager):
    auth = config_manager.get().auth.model_dump(mode="json")
    auth["store"] = "memory"
    cfg = config_manager.save_non_sensitive("auth.json", auth)
    assert cfg.auth.store == CredentialStoreKind.memory
    with open(config_manager.fs.auth, "r", encoding="utf-8") as f:
        assert json.load(f)["store"] == "memory"


def test_unknown_fields_rejected(config_manager):
    bad = config_manager.get().web.model_dump()
    bad["unknown_field"] = 1
    with pytest.raises(ConfigError):
        config_manager.save_non_sensitive("web.json", bad)


def test_remote_backend_requires_url(config_manager):
    auth = config_manager.get().auth.model_dump(mode="json")
    auth["backend"] = "remote"
    with pytest.raises(ConfigError):
        config_manager.save_non_sensitive("auth.json", auth)
    auth["remote_base_url"] = "https://auth.example.com"
    cfg = config_manager.save_non_sensitive("auth.json", auth)
    assert cfg.auth.backend == AuthBackendKind.remote


def test_wildcard_origin_rejected(config_manager):
    web = config_manager.get().web.model_dump()
    web["allowed_origins"] = ["*"]
    with pytest.raises(ConfigError):
        config_manager.save_non_sensitive("web.json", web)


def test_unknown_file_and_read_only_rejected(config_manager, tmp_config_root):
    with pytest.raises(ConfigError):
        config_manager.save_non_sensitive("secrets.json", {})
    ro = ConfigManager(fs=tmp_config_root, read_only=True)
    ro.load_all()
    with pytest.raises(ConfigError):
        ro.save_non_sensitive("web.json", ro.get().web.model_dump())


def test_read_non_sensitive(config_manager):
    assert config_manager.read_non_sensitive("web.json")["port"] == 8000
    assert config_manager.read_non_sensitive("missing.json") == {}


def test_non_utf8_config_is_recovered_as_corrupt(config_manager):
    fs = config_manager.fs
    with open(fs.auth, "wb") as f:
        f.write(b'{"backend": "\xff\xfe"}')
    cfg = config_manager.load_all()
    assert cfg.auth.backend == AuthBackendKind.demo
    assert any("auth.json" in b and "corrupt" in b for b in os.listdir(fs.backups_dir))
    with open(fs.auth, "r", encoding="utf-8") as f:
        assert json.load(f)["backend"] == "demo"
