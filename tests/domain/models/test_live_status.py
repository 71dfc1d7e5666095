"""Tests for live status models."""

import pytest
from pydantic import ValidationError

from live_monitor.domain.models.live_status import LiveStatus, LiveStatusRecord


@pytest.mark.parametrize("flag", [False, "false", "0", 0])
def test_offline_status_drops_metadata(flag):
    """Test that every spelling of offline clears the live-only fields."""
    status = LiveStatus(
        is_live=flag,
        title="Ranked Grind",
        viewer_count=5,
        started_at="2024-01-01T00:00:00.000Z",
        stream_url="https://www.twitch.tv/alice",
    )

    assert status.is_live is False
    assert status.title is None
    assert status.viewer_count is None
    assert status.started_at is None
    assert status.stream_url is None


@pytest.mark.parametrize("flag", [True, "true", 1])
def test_live_status_keeps_metadata(flag):
    """Test that a live status keeps its title and viewers."""
    status = LiveStatus(is_live=flag, title="Ranked Grind", viewer_count=5)

    assert status.is_live is True
    assert status.title == "Ranked Grind"
    assert status.viewer_count == 5


def test_missing_flag_is_rejected():
    """Test that is_live is required."""
    with pytest.raises(ValidationError):
        LiveStatus(title="Ranked Grind")


def test_record_round_trip_of_offline_status():
    """Test that a record rebuilt from an offline status stays bare."""
    record = LiveStatusRecord.from_status("twitch:alice", LiveStatus(is_live="false", title="x"))

    assert record.is_live is False
    assert record.title is None
    assert record.to_status() == LiveStatus.offline()
