from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from lexdocs.core.config.io import (
    atomic_write_json,
    read_json_file,
    recover_from_corrupt,
    snapshot_last_known_good,
)
from lexdocs.core.config.models import AppConfig, AppFileConfig, AuthConfig, LoggingConfig, WebConfig
from lexdocs.core.config.paths import ConfigFsPaths
from lexdocs.core.errors import ConfigError


CONFIG_FILES: Dict[str, type] = {
    "app.json": AppFileConfig,
    "auth.json": AuthConfig,
    "web.json": WebConfig,
    "logging.json": LoggingConfig,
}


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[AppConfig] = None

    # ---------- public API ----------
    def load_all(self) -> AppConfig:
        os.makedirs(self.fs.config_dir, exist_ok=True)
        os.makedirs(self.fs.backups_dir, exist_ok=True)
        os.makedirs(self.fs.last_known_good_dir, exist_ok=True)

        files = self._load_raw_files()
        max_backups = int(((files.get("app.json") or {}).get("backups") or {}).get("max_backups_per_file", 10))
        ensured = self._ensure_defaults(files, max_backups=max_backups)
        cfg = self._validate_all(ensured)
        self._cfg = cfg

        if not self.read_only:
            snapshot_last_known_good(self.fs.config_dir, self.fs.last_known_good_dir)
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def read_non_sensitive(self, filename: str) -> Dict[str, Any]:
        path = os.path.join(self.fs.config_dir, filename)
        rr = read_json_file(path)
        if rr.ok:
            return rr.data
        if rr.error and rr.error.startswith("corrupt_json"):
            data, _ = recover_from_corrupt(path, self.fs.backups_dir, self.fs.last_known_good_dir)
            return data
        return {}

    def save_non_sensitive(self, filename: str, data: Dict[str, Any]) -> AppConfig:
        """
        Atomic write + backups, then validate whole config set.
        If validation fails, raise (backup remains available).
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if filename not in CONFIG_FILES:
            raise ConfigError(f"Unknown config file: {filename}")
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        max_backups = int((self.get().app.backups or {}).get("max_backups_per_file", 10))
        path = os.path.join(self.fs.config_dir, filename)
        atomic_write_json(path, data, self.fs.backups_dir, max_backups=max_backups)
        return self.load_all()

    # ---------- internals ----------
    def _load_raw_files(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for name in CONFIG_FILES:
            path = os.path.join(self.fs.config_dir, name)
            rr = read_json_file(path)
            if rr.ok:
                out[name] = rr.data
                continue
            if rr.error and (rr.error.startswith("corrupt_json") or rr.error == "not_object"):
                data, recovered = recover_from_corrupt(path, self.fs.backups_dir, self.fs.last_known_good_dir)
                if self.logger:
                    how = "restored last known good" if recovered else "falling back to defaults"
                    self.logger.warning(f"Config {name} was corrupt ({rr.error}); {how}.")
                out[name] = data
            else:
                out[name] = {}
        return out

    def _ensure_defaults(self, files: Dict[str, Dict[str, Any]], *, max_backups: int) -> Dict[str, Dict[str, Any]]:
        out = dict(files)
        for name, model in CONFIG_FILES.items():
            if out.get(name):
                continue
            dflt = model().model_dump(mode="json")
            out[name] = dflt
            if self.logger:
                self.logger.info(f"Missing config {name}; creating defaults.")
            if not self.read_only:
                atomic_write_json(os.path.join(self.fs.config_dir, name), dflt, self.fs.backups_dir, max_backups=max_backups)
        return out

    def _validate_all(self, files: Dict[str, Dict[str, Any]]) -> AppConfig:
        try:
            return AppConfig(
                app=AppFileConfig.model_validate(files.get("app.json") or {}),
                auth=AuthConfig.model_validate(files.get("auth.json") or {}),
                web=WebConfig.model_validate(files.get("web.json") or {}),
                logging=LoggingConfig.model_validate(files.get("logging.json") or {}),
            )
        except ValidationError as e:
            raise ConfigError("Invalid configuration.", error=str(e)) from e
