"""Shared fixtures and mock platform clients for collector tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.health.base import format_instant
from src.health.codes import Metric
from src.health.config_loader import CollectorConfig, load_collector_config
from src.health.observation import Observation, quantity_observation

RANGE_START = datetime(2026, 2, 1, tzinfo=timezone.utc)
RANGE_END = datetime(2026, 2, 28, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def collector_config() -> CollectorConfig:
    """Load the bundled collector config for tests."""
    return load_collector_config()


@pytest.fixture
def time_range() -> tuple[datetime, datetime]:
    return RANGE_START, RANGE_END


# ---------------------------------------------------------------------------
# Observation series
# ---------------------------------------------------------------------------


def _series(count: int) -> list[Observation]:
    base = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)
    return [
        quantity_observation(
            Metric.HEART_RATE,
            format_instant(base + timedelta(minutes=15 * i)),
            60.0 + (i % 40),
        )
        for i in range(count)
    ]


@pytest.fixture
def make_series():
    """Factory for heart-rate series of a given length, 15 minutes apart."""
    return _series


# ---------------------------------------------------------------------------
# Mock platform clients
# ---------------------------------------------------------------------------


@pytest.fixture
def health_connect_client() -> MagicMock:
    """Health Connect client that is initialized and grants every permission."""
    client = MagicMock()
    client.initialize = AsyncMock(return_value=True)
    client.request_permission = AsyncMock(side_effect=lambda permissions: permissions)
    client.read_records = AsyncMock(return_value={"records": []})
    return client


@pytest.fixture
def healthkit_client() -> MagicMock:
    """HealthKit client that is available and authorizes every request."""
    client = MagicMock()
    client.is_health_data_available = AsyncMock(return_value=True)
    client.request_authorization = AsyncMock(return_value=True)
    client.query_quantity_samples = AsyncMock(return_value=[])
    return client
