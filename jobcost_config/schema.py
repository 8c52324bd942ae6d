"""
JobCostConfig schema.

Frozen dataclasses the YAML loader parses into.  Each section validates its
own values on construction and raises ``ConfigurationError`` on anything out
of range.

Two percentage scales live here on purpose:

  StatusThresholds     -- budget status (warning > 85, critical > 100)
  UsageBandThresholds  -- dashboard usage colouring (elevated > 75, over > 90)

They describe different widgets and are not unified.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from jobcost_kernel.exceptions import ConfigurationError
from jobcost_kernel.logging_config import get_logger

logger = get_logger("config.schema")


def _require_finite(value: Decimal, key: str) -> None:
    if not isinstance(value, Decimal) or not value.is_finite():
        raise ConfigurationError(key, f"expected a finite decimal, got {value!r}")


@dataclass(frozen=True)
class StatusThresholds:
    """Percent-used cut-offs for budget status classification (exclusive)."""

    warning_percent: Decimal = Decimal("85")
    critical_percent: Decimal = Decimal("100")

    def __post_init__(self):
        _require_finite(self.warning_percent, "status.warning_percent")
        _require_finite(self.critical_percent, "status.critical_percent")
        if self.warning_percent < 0:
            raise ConfigurationError("status.warning_percent", "cannot be negative")
        if self.critical_percent < self.warning_percent:
            raise ConfigurationError(
                "status.critical_percent",
                f"must be at least warning_percent ({self.warning_percent})",
            )


@dataclass(frozen=True)
class UsageBandThresholds:
    """Percent-used cut-offs for the dashboard usage chart (exclusive)."""

    elevated_percent: Decimal = Decimal("75")
    over_percent: Decimal = Decimal("90")

    def __post_init__(self):
        _require_finite(self.elevated_percent, "usage_bands.elevated_percent")
        _require_finite(self.over_percent, "usage_bands.over_percent")
        if self.elevated_percent < 0:
            raise ConfigurationError("usage_bands.elevated_percent", "cannot be negative")
        if self.over_percent < self.elevated_percent:
            raise ConfigurationError(
                "usage_bands.over_percent",
                f"must be at least elevated_percent ({self.elevated_percent})",
            )


@dataclass(frozen=True)
class LaborConfig:
    """How logged time becomes labor cost."""

    default_hourly_rate: Decimal = Decimal("75")
    costed_entity_types: tuple[str, ...] = ("WORK_ORDER", "PROJECT")
    expense_type: str = "LABOR"
    atomic_writes: bool = True

    def __post_init__(self):
        _require_finite(self.default_hourly_rate, "labor.default_hourly_rate")
        if self.default_hourly_rate < 0:
            raise ConfigurationError("labor.default_hourly_rate", "cannot be negative")
        if not self.expense_type or not self.expense_type.strip():
            raise ConfigurationError("labor.expense_type", "cannot be empty")
        object.__setattr__(
            self,
            "costed_entity_types",
            tuple(t.strip().upper() for t in self.costed_entity_types),
        )


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False

    def __post_init__(self):
        if not self.url:
            raise ConfigurationError("database.url", "cannot be empty")


@dataclass(frozen=True)
class JobCostConfig:
    """Complete runtime configuration."""

    currency: str = "USD"
    status: StatusThresholds = field(default_factory=StatusThresholds)
    usage_bands: UsageBandThresholds = field(default_factory=UsageBandThresholds)
    labor: LaborConfig = field(default_factory=LaborConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def __post_init__(self):
        if len(self.currency) != 3 or not self.currency.isalpha():
            raise ConfigurationError("currency", f"not an ISO 4217 code: {self.currency!r}")
        object.__setattr__(self, "currency", self.currency.upper())
        logger.info("jobcost_config_initialized", extra={
            "currency": self.currency,
            "warning_percent": str(self.status.warning_percent),
            "critical_percent": str(self.status.critical_percent),
            "atomic_labor_writes": self.labor.atomic_writes,
        })

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()
