import pytest

from handoff_snapshot.config import (
    RegionConfig,
    SnapshotConfig,
    default_regions,
    load_config,
)
from handoff_snapshot.constants import DEFAULT_SLACK_CHANNEL, Region
from handoff_snapshot.exceptions import ConfigurationError


def test_load_config_defaults():
    config = load_config(pylon_token="p", slack_token="s")

    assert config.slack_channel == DEFAULT_SLACK_CHANNEL
    assert config.lookback_days == 30
    assert config.timezone == "America/Los_Angeles"
    assert config.window_scan.max_pages == 500
    assert config.queue_scan.max_pages == 1000
    assert config.queue_scan.page_size == 200


def test_load_config_overrides():
    config = load_config(
        pylon_token="p", slack_channel="#elsewhere", lookback_days=14, require_slack=False
    )
    assert config.slack_channel == "#elsewhere"
    assert config.lookback_days == 14
    assert config.slack_token is None


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"pylon_token": None, "slack_token": "s"}, "PYLON_TOKEN"),
        ({"pylon_token": "p"}, "SLACK_BOT_TOKEN"),
        ({"pylon_token": "p", "slack_token": "s", "lookback_days": 0}, "SCAN_B_LOOKBACK_DAYS"),
        ({"pylon_token": "p", "slack_token": "s", "lookback_days": -3}, "SCAN_B_LOOKBACK_DAYS"),
    ],
)
def test_load_config_rejects_bad_values(kwargs, message):
    with pytest.raises(ConfigurationError, match=message):
        load_config(**kwargs)


def test_default_regions():
    regions = default_regions()

    assert set(regions) == {Region.US, Region.EMEA, Region.APAC}
    assert regions[Region.APAC].crosses_midnight
    assert regions[Region.APAC].duration_hours == 9
    assert not regions[Region.US].crosses_midnight
    assert regions[Region.EMEA].roster == ("Dylan Bonar", "Tommy Lundy", "Robert Norrie")


@pytest.mark.parametrize("start, end", [(-1, 5), (3, 25), (6, 6), (24, 0)])
def test_region_offsets_are_validated(start, end):
    with pytest.raises(ConfigurationError):
        RegionConfig(key=Region.US, label="US", header_label="x", start_hour=start, end_hour=end)


def test_region_lookup_accepts_plain_strings():
    config = SnapshotConfig(pylon_token="p")
    assert config.region("emea").key == Region.EMEA
    with pytest.raises(ConfigurationError, match="Unknown region"):
        config.region("mars")
