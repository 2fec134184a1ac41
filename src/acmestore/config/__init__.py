"""Configuration subsystem for acmestore.

Public API::

    from acmestore.config import get_config, AcmestoreConfig

    # At startup:
    AcmestoreConfig(config_file="config.yaml")

    # Everywhere else:
    cfg = get_config()
    url = cfg.settings.store.url          # typed access
    name = cfg.get("store.database")      # dynamic dot-path
"""

from acmestore.config.acmestore_config import (
    AcmestoreConfig,
    ConfigValidationError,
    get_config,
)
from acmestore.config.settings import (
    AcmestoreSettings,
    LoggingSettings,
    StoreSettings,
    build_settings,
)

__all__ = [
    "AcmestoreConfig",
    "AcmestoreSettings",
    "ConfigValidationError",
    "LoggingSettings",
    "StoreSettings",
    "build_settings",
    "get_config",
]
