from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_AUDIT_TABLE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_FUNCTION_NAME,
    DEFAULT_TERRAIN_TOLERANCE,
    BackendConfig,
    ImportSettings,
    WorkbenchConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default config/workbench.yml)
- Validate against config_schema.json (shipped next to this module)
- Apply defaults
- Apply environment overrides (the CLI loads .env beforehand):
    RESORT_BACKEND_URL  -> backend.url
    RESORT_ADMIN_TOKEN  -> bearer token (never read from YAML)
    RESORT_ANON_KEY     -> REST apikey header
    RESORT_ADMIN_EMAIL  -> operator_email
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/workbench.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the data fails
            validation (missing required keys, wrong types, extra keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> WorkbenchConfig:
    """Load, validate and resolve the workbench configuration.

    Args:
        path: YAML config file
        environ: Environment mapping for overrides (defaults to os.environ)

    Raises:
        ConfigError: file missing, invalid YAML, or schema violation
    """
    env = os.environ if environ is None else environ
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    backend_raw = data["backend"]
    import_raw = data.get("import") or {}

    backend = BackendConfig(
        url=env.get("RESORT_BACKEND_URL") or backend_raw["url"],
        function_name=backend_raw.get("function_name", DEFAULT_FUNCTION_NAME),
        audit_table=backend_raw.get("audit_table", DEFAULT_AUDIT_TABLE),
        timeout_seconds=backend_raw.get("timeout_seconds"),
        access_token=env.get("RESORT_ADMIN_TOKEN") or None,
        anon_key=env.get("RESORT_ANON_KEY") or None,
    )
    settings = ImportSettings(
        batch_size=import_raw.get("batch_size", DEFAULT_BATCH_SIZE),
        terrain_tolerance_pct=float(import_raw.get("terrain_tolerance_pct", DEFAULT_TERRAIN_TOLERANCE)),
        assign_placeholders=import_raw.get("assign_placeholders", True),
    )
    operator = env.get("RESORT_ADMIN_EMAIL") or data.get("operator_email") or "unknown"
    return WorkbenchConfig(backend=backend, settings=settings, operator_email=operator)
