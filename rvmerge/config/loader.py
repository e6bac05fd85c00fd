from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from rvmerge.models.config_models import AnonymizationCategory, MergeConfig, SheetSchema

"""Sheet catalogue loader.

Responsibilities:
- Load the bundled rvmerge/config/sheets.yml (or an override path)
- Validate it against sheets.schema.json
- Build the frozen MergeConfig used by every merge stage
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_merge_config",
]

_CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = _CONFIG_DIR / "sheets.yml"
SCHEMA_PATH = _CONFIG_DIR / "sheets.schema.json"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate catalogue data against the JSON schema.

    Raises:
        ConfigError: If the schema file is unreadable or the data violates it
    """
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _check_consistency(config: MergeConfig) -> None:
    # things the JSON schema cannot express
    names = [s.name.lower() for s in config.sheets]
    if len(set(names)) != len(names):
        raise ConfigError("config validation failed: duplicate sheet names")
    primary = config.sheets[0]
    if config.identifier_column not in primary.mandatory_columns:
        raise ConfigError(
            f"config validation failed: identifier column '{config.identifier_column}' "
            f"is not mandatory in primary sheet '{primary.name}'"
        )
    labels = [c.label for c in config.anonymization]
    if len(set(labels)) != len(labels):
        raise ConfigError("config validation failed: duplicate anonymization labels")


def load_merge_config(path: Path | str | None = None) -> MergeConfig:
    """Load and validate a sheet catalogue.

    Args:
        path: YAML file to load; the bundled catalogue when None

    Raises:
        ConfigError: On a missing file, invalid YAML or schema violation
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise ConfigError(f"config file not found: {cfg_path}")
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    sheets = tuple(
        SheetSchema(
            name=raw["name"],
            mandatory_columns=tuple(raw["mandatory_columns"]),
            aliases=MappingProxyType(dict(raw.get("aliases") or {})),
        )
        for raw in data["sheets"]
    )
    categories = tuple(
        AnonymizationCategory(column=raw["column"], prefix=raw["prefix"], label=raw["label"])
        for raw in data["anonymization"]
    )
    defaults = MergeConfig(sheets=sheets, anonymization=categories)
    config = MergeConfig(
        sheets=sheets,
        anonymization=categories,
        identifier_column=data.get("identifier_column", defaults.identifier_column),
        os_configuration_column=data.get("os_configuration_column", defaults.os_configuration_column),
        host_column=data.get("host_column", defaults.host_column),
        host_sheet=data.get("host_sheet", defaults.host_sheet),
        source_file_column=data.get("source_file_column", defaults.source_file_column),
    )
    _check_consistency(config)
    return config
