"""
Pytest fixtures for the job cost test suite.

Provides:
- An in-memory SQLite database per test (fresh tables every test)
- DataStore, services, deterministic clock, and a recording notifier
- Captured structured logs

SQLite does not enforce foreign keys here, so tests can create orphaned
references the way a dropped or mistyped key would in production.
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest

from jobcost_config.schema import JobCostConfig, LaborConfig
from jobcost_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from jobcost_kernel.db.store import DataStore
from jobcost_kernel.domain.clock import DeterministicClock
from jobcost_kernel.logging_config import (
    StructuredFormatter,
    clear_scope,
    configure_logging,
    reset_logging,
)
from jobcost_kernel.services.notifier import Notification, NotificationLevel
from jobcost_modules.budget.service import BudgetItemService
from jobcost_modules.expense.service import ExpenseLedger
from jobcost_modules.expense.timelog import TimeEntryService
from jobcost_modules.project.service import BudgetRollupService

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Drop any job scope a test left bound."""
    clear_scope()
    yield
    clear_scope()


@pytest.fixture
def captured_logs():
    """
    Capture jobcost_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.record_expense(...)
            logs = captured_logs()
            assert any(r["message"] == "expense_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("jobcost_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Notifications
# =============================================================================


class RecordingNotifier:
    """Keeps every notification for assertions."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def errors(self) -> list[Notification]:
        return [n for n in self.notifications if n.level is NotificationLevel.ERROR]

    @property
    def warnings(self) -> list[Notification]:
        return [n for n in self.notifications if n.level is NotificationLevel.WARNING]

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notifications]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database with every table created."""
    engine = init_engine_from_url(TEST_DATABASE_URL)
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine):
    session = get_session()
    yield session
    session.close()


@pytest.fixture
def store(session) -> DataStore:
    return DataStore(session)


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def config() -> JobCostConfig:
    return JobCostConfig.with_defaults()


@pytest.fixture
def budget_items(store, deterministic_clock, notifier) -> BudgetItemService:
    return BudgetItemService(store, deterministic_clock, notifier)


@pytest.fixture
def ledger(store, deterministic_clock, notifier) -> ExpenseLedger:
    return ExpenseLedger(store, deterministic_clock, notifier)


@pytest.fixture
def timelog(store, config, deterministic_clock, notifier) -> TimeEntryService:
    return TimeEntryService(store, config.labor, deterministic_clock, notifier)


@pytest.fixture
def legacy_timelog(store, deterministic_clock, notifier) -> TimeEntryService:
    """Sequential, non-atomic labor writes."""
    return TimeEntryService(store, LaborConfig(atomic_writes=False), deterministic_clock, notifier)


@pytest.fixture
def rollup(store, config, deterministic_clock, notifier) -> BudgetRollupService:
    return BudgetRollupService(store, config, deterministic_clock, notifier)


# =============================================================================
# Records
# =============================================================================


@pytest.fixture
def project_id(store) -> UUID:
    return store.insert("projects", {"name": "Kitchen Remodel"})["id"]


@pytest.fixture
def other_project_id(store) -> UUID:
    return store.insert("projects", {"name": "Garage Addition"})["id"]


@pytest.fixture
def employee_id(store) -> UUID:
    return store.insert("employees", {
        "first_name": "Dana",
        "last_name": "Reyes",
        "hourly_rate": Decimal("40"),
    })["id"]


@pytest.fixture
def unrated_employee_id(store) -> UUID:
    return store.insert("employees", {"first_name": "Sam", "last_name": "Ortiz"})["id"]


@pytest.fixture
def work_date() -> date:
    return date(2024, 3, 15)
