from datetime import UTC, datetime

import pytest

from tests.fixtures.models import (
    USER,
    FakeChartGateway,
    InMemoryPersistence,
    make_entries,
    make_weekly_periods,
)
from vinylogue.config import settings

# Weekly history starting on a Sunday, as Last.fm periods do
HISTORY_START = datetime(2019, 1, 6, 12, tzinfo=UTC)
HISTORY_WEEKS = 52 * 6


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point file output at a per-test directory."""
    monkeypatch.setattr(settings, "data_dir", tmp_path / "data")
    monkeypatch.setattr(settings.logging, "log_file", tmp_path / "logs" / "vinylogue.log")
    monkeypatch.setattr(settings.credentials, "lastfm_key", "")
    monkeypatch.setattr(settings.credentials, "lastfm_secret", "")
    monkeypatch.setattr(settings.credentials, "lastfm_username", "")
    return settings


@pytest.fixture
def periods():
    """Six years of contiguous weekly periods."""
    return make_weekly_periods(HISTORY_START, HISTORY_WEEKS)


@pytest.fixture
def gateway(periods):
    """Gateway with ten-album charts for every period."""
    fake = FakeChartGateway(periods=periods)
    fake.charts = {period.key: make_entries(USER, period, 10) for period in periods}
    return fake


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def anchor():
    """'Now' for chart lookups: mid-way through the recorded history."""
    return datetime(2024, 3, 13, 9, tzinfo=UTC)
