from lexdocs.core.config.manager import ConfigManager
from lexdocs.core.config.models import AppConfig, AuthBackendKind, CredentialStoreKind
from lexdocs.core.config.paths import ConfigFsPaths

__all__ = ["ConfigManager", "AppConfig", "AuthBackendKind", "CredentialStoreKind", "ConfigFsPaths"]
