"""Shared fixtures for the governance engine tests."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from governance_engine.app_logging import ROOT_LOGGER_NAME
from governance_engine.config import reset_config
from governance_engine.loader import Workspace
from governance_engine.schema import (
    Application,
    ApplicationStatus,
    SecurityMeasure,
    SecurityProvisions,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _isolate_global_state():
    """Reset the cached config and the package logger between tests."""
    reset_config()
    yield
    reset_config()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def workspace(clock) -> Workspace:
    return Workspace.in_memory(clock=clock)


def make_application(
    app_id: str = "a1",
    name: str = "X",
    status: ApplicationStatus = ApplicationStatus.ACTIVE,
    version: str = "1.0.0",
    age_days: int = 500,
    now: datetime = NOW,
    **overrides,
) -> Application:
    """Active, versioned application with one confidentiality and one integrity measure."""
    fields = dict(
        id=app_id,
        name=name,
        version=version,
        status=status,
        created_at=now - timedelta(days=age_days),
        updated_at=now,
        security_provisions=SecurityProvisions(
            data_confidentiality=[SecurityMeasure(name="TLS")],
            data_integrity=[SecurityMeasure(name="Checksums")],
        ),
    )
    fields.update(overrides)
    return Application(**fields)
