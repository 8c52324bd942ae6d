"""
Configuration Loader (``jobcost_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``jobcost_config.schema`` dataclasses.  Missing sections fall back to the
schema defaults; present values are validated by the dataclasses.

Failure modes
-------------
* Missing YAML file  -> ``ConfigurationError``.
* Malformed YAML  -> ``ConfigurationError`` chained from ``yaml.YAMLError``.
* Non-numeric or non-finite percentage or rate  -> ``ConfigurationError``.
* Non-boolean switch (``atomic_writes``, ``echo``)  -> ``ConfigurationError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from jobcost_config.schema import (
    DatabaseConfig,
    JobCostConfig,
    LaborConfig,
    StatusThresholds,
    UsageBandThresholds,
)
from jobcost_kernel.exceptions import ConfigurationError
from jobcost_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"
DATABASE_URL_ENV = "JOBCOST_DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file is missing, unreadable, or not a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError(str(path), "file not found") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_decimal(value: Any, key: str) -> Decimal:
    """Parse a YAML scalar into Decimal (via ``str`` so floats stay exact)."""
    if isinstance(value, bool):
        raise ConfigurationError(key, f"expected a number, got {value!r}")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(key, f"expected a number, got {value!r}") from exc
    if not parsed.is_finite():
        raise ConfigurationError(key, f"expected a finite number, got {value!r}")
    return parsed


def parse_bool(value: Any, key: str) -> bool:
    """Accept only YAML booleans; quoted ``"false"`` is a string, not False."""
    if not isinstance(value, bool):
        raise ConfigurationError(key, f"expected true or false, got {value!r}")
    return value


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(name, "must be a mapping")
    return section


def parse_status(data: Mapping[str, Any]) -> StatusThresholds:
    defaults = StatusThresholds()
    return StatusThresholds(
        warning_percent=parse_decimal(
            data.get("warning_percent", defaults.warning_percent), "status.warning_percent"
        ),
        critical_percent=parse_decimal(
            data.get("critical_percent", defaults.critical_percent), "status.critical_percent"
        ),
    )


def parse_usage_bands(data: Mapping[str, Any]) -> UsageBandThresholds:
    defaults = UsageBandThresholds()
    return UsageBandThresholds(
        elevated_percent=parse_decimal(
            data.get("elevated_percent", defaults.elevated_percent),
            "usage_bands.elevated_percent",
        ),
        over_percent=parse_decimal(
            data.get("over_percent", defaults.over_percent), "usage_bands.over_percent"
        ),
    )


def parse_labor(data: Mapping[str, Any]) -> LaborConfig:
    defaults = LaborConfig()
    entity_types = data.get("costed_entity_types", defaults.costed_entity_types)
    if isinstance(entity_types, str):
        entity_types = [entity_types]
    return LaborConfig(
        default_hourly_rate=parse_decimal(
            data.get("default_hourly_rate", defaults.default_hourly_rate),
            "labor.default_hourly_rate",
        ),
        costed_entity_types=tuple(str(t) for t in entity_types),
        expense_type=str(data.get("expense_type", defaults.expense_type)),
        atomic_writes=parse_bool(
            data.get("atomic_writes", defaults.atomic_writes), "labor.atomic_writes"
        ),
    )


def parse_database(data: Mapping[str, Any], env: Mapping[str, str]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    url = env.get(DATABASE_URL_ENV) or data.get("url", defaults.url)
    return DatabaseConfig(
        url=str(url), echo=parse_bool(data.get("echo", defaults.echo), "database.echo")
    )


def parse_config(
    data: Mapping[str, Any],
    env: Mapping[str, str] | None = None,
) -> JobCostConfig:
    """
    Build a ``JobCostConfig`` from a parsed YAML mapping.

    ``env`` defaults to ``os.environ``; only ``JOBCOST_DATABASE_URL`` is read.
    """
    env = os.environ if env is None else env
    return JobCostConfig(
        currency=str(data.get("currency", "USD")),
        status=parse_status(_section(data, "status")),
        usage_bands=parse_usage_bands(_section(data, "usage_bands")),
        labor=parse_labor(_section(data, "labor")),
        database=parse_database(_section(data, "database"), env),
    )


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> JobCostConfig:
    """Load and validate configuration from ``path`` (default: bundled defaults.yaml)."""
    config_path = path or DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(config_path), env)
    logger.info("config_loaded", extra={"path": str(config_path)})
    return config
