"""
jobcost_config -- configuration for the job cost core.

``load_config()`` is the single entry point.  It reads the bundled
``defaults.yaml`` (or a caller-supplied file), applies the
``JOBCOST_DATABASE_URL`` override, and returns a frozen ``JobCostConfig``.
"""

from jobcost_config.loader import load_config, parse_config
from jobcost_config.schema import (
    DatabaseConfig,
    JobCostConfig,
    LaborConfig,
    StatusThresholds,
    UsageBandThresholds,
)

__all__ = [
    "load_config",
    "parse_config",
    "DatabaseConfig",
    "JobCostConfig",
    "LaborConfig",
    "StatusThresholds",
    "UsageBandThresholds",
]
