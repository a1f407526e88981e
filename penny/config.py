from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

import yaml

from penny.core.categorizer import DEFAULT_RULES, KeywordCategorizer, rules_from_config
from penny.exceptions import ConfigError

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "penny.db",
    "anomaly_multiplier": 3.0,
    "top_vendors_limit": 5,
    "file_parsers": {
        "csv": "penny.loaders.csv_loader.CSVExpenseParser",
        "xlsx": "penny.loaders.excel_loader.ExcelExpenseParser",
        "xls": "penny.loaders.excel_loader.LegacyExcelExpenseParser",
    },
    "category_rules": None,
}

_ENV_OVERRIDES = {
    "PENNY_DB_PATH": ("db_path", str),
    "PENNY_ANOMALY_MULTIPLIER": ("anomaly_multiplier", float),
    "PENNY_TOP_VENDORS_LIMIT": ("top_vendors_limit", int),
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | os.PathLike | None = None) -> Dict[str, object]:
    """Load a YAML config file, fill in defaults and apply env overrides.

    Parameters
    ----------
    path:
        Optional path to a YAML file. When omitted only defaults and
        ``PENNY_*`` environment variables are used.
    """
    config: Dict[str, object] = {}
    if path:
        with open(Path(path), encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        config = loaded

    config = _merge_defaults(config, DEFAULT_CONFIG)
    for env_key, (key, cast) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_key)
        if raw:
            try:
                config[key] = cast(raw)
            except ValueError as exc:
                raise ConfigError(f"Invalid {env_key}: {raw!r}") from exc

    validate_config(config)
    return config


def validate_config(config: Dict[str, object]) -> None:
    try:
        multiplier = float(config["anomaly_multiplier"])
        limit = int(config["top_vendors_limit"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric config value: {exc}") from exc
    if multiplier <= 0:
        raise ConfigError("anomaly_multiplier must be greater than 0")
    if limit <= 0:
        raise ConfigError("top_vendors_limit must be greater than 0")
    rules = config.get("category_rules")
    if rules is not None and not isinstance(rules, list):
        raise ConfigError("category_rules must be a list")


def build_categorizer(config: Dict[str, object]) -> KeywordCategorizer:
    rules = config.get("category_rules")
    if rules:
        return KeywordCategorizer(rules_from_config(rules))
    return KeywordCategorizer(DEFAULT_RULES)


def configure_logging(level: str | int | None = None) -> None:
    """Set up root logging; ``PENNY_LOG_LEVEL`` applies when level is None."""
    level = level or os.getenv("PENNY_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
