"""acmestore configuration loader.

Lifecycle::

    # 1. CLI (or create_store) creates the singleton once
    AcmestoreConfig(config_file="/etc/acmestore/config.yaml")

    # 2. Any module retrieves it afterwards
    from acmestore.config import get_config
    cfg = get_config()
    cfg.settings.store.url  # typed access

    # 3. Dynamic access
    cfg.get("store.database", default="greenlock")
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from acmestore.config.settings import AcmestoreSettings, build_settings

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_MONGODB_SCHEMES = ("mongodb://", "mongodb+srv://")

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton reference
# ---------------------------------------------------------------------------
_instance: AcmestoreConfig | None = None


def get_config() -> AcmestoreConfig:
    """Return the initialised configuration singleton.

    Raises :class:`RuntimeError` if :class:`AcmestoreConfig` has not been
    created yet.
    """
    if _instance is None:
        msg = (
            "Configuration not initialised. "
            "AcmestoreConfig must be created before calling get_config()."
        )
        raise RuntimeError(msg)
    return _instance


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when schema or cross-field validation finds problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _read_file(config_file: Path) -> dict:
    with config_file.open(encoding="utf-8") as f:
        if config_file.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            [f"{config_file}: top level must be a mapping (got {type(data).__name__})"],
        )
    return data


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class AcmestoreConfig:
    """Central configuration for acmestore.

    Built either from a YAML/JSON file (``config_file=``) or from an
    in-memory mapping (``data=``).  The JSON schema is bundled at
    ``config/schema.json``.

    After construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(
        self,
        *,
        config_file: str | Path | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> None:
        global _instance  # noqa: PLW0603

        if config_file is not None and data is not None:
            msg = "Pass either config_file or data, not both"
            raise ValueError(msg)

        if config_file is not None:
            path = Path(config_file)
            raw = _read_file(path)
            raw["_source"] = str(path)
        else:
            raw = copy.deepcopy(dict(data or {}))

        # Env vars first so substituted values are checked against the schema.
        _resolve_env_vars(raw)
        self._data: dict = raw
        self._validate_schema()
        self.additional_checks()

        self._settings: AcmestoreSettings = build_settings(self._data)
        _instance = self

    # -- access -------------------------------------------------------------

    @property
    def data(self) -> dict:
        return self._data

    @property
    def settings(self) -> AcmestoreSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    def get(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Look up a dot-separated *path* in the raw config data."""
        current: Any = self._data
        for part in path.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    # -- validation ---------------------------------------------------------

    def _validate_schema(self) -> None:
        schema = json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))
        validator = Draft202012Validator(schema)
        errors = [
            f"{'.'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
            for err in sorted(validator.iter_errors(self._data), key=str)
        ]
        if errors:
            raise ConfigValidationError(errors)

    def additional_checks(self) -> None:
        """Semantic & cross-field validation, run after schema validation."""
        errors: list[str] = []
        warnings: list[str] = []

        store = self._data.get("store") or {}
        backend = store.get("backend", "mongodb")

        # -- store --
        if backend == "mongodb":
            url = store.get("url", "mongodb://localhost:27017/greenlock")
            if not url.startswith(_MONGODB_SCHEMES):
                errors.append(
                    f"store.url must start with one of {list(_MONGODB_SCHEMES)} "
                    "when store.backend is 'mongodb'",
                )
        elif "url" in store:
            warnings.append(
                f"store.url is ignored when store.backend is '{backend}'",
            )
        if backend != "mongodb" and store.get("client_options"):
            warnings.append(
                f"store.client_options is ignored when store.backend is '{backend}'",
            )

        accounts = store.get("accounts_collection", "accounts")
        certificates = store.get("certificates_collection", "certificates")
        if accounts == certificates:
            errors.append(
                f"store.accounts_collection and store.certificates_collection "
                f"must differ (both are '{accounts}')",
            )

        connect_ms = store.get("connect_timeout_ms", 1000)
        select_ms = store.get("server_selection_timeout_ms", 5000)
        if connect_ms > select_ms:
            warnings.append(
                f"store.connect_timeout_ms ({connect_ms}) exceeds "
                f"store.server_selection_timeout_ms ({select_ms}); "
                "server selection will time out first",
            )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    # -- helpers ------------------------------------------------------------

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton -- testing only."""
        global _instance  # noqa: PLW0603
        _instance = None

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        source = self._data.get("_source", "<mapping>")
        return f"<AcmestoreConfig config_file={source}>"
