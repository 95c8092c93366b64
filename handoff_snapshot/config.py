"""Configuration structures injected into the scan engine."""

from dataclasses import dataclass, field

from .constants import (
    CF_HANDOFF_REGION,
    CF_MEETING_REQUIRED,
    CF_PRIORITY,
    DEFAULT_AGED_DAYS,
    DEFAULT_BACKOFF_BASE,
    DEFAULT_BACKOFF_CAP,
    DEFAULT_INTER_PAGE_DELAY,
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_PAGES_QUEUE_SCAN,
    DEFAULT_MAX_PAGES_WINDOW_SCAN,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SLACK_CHANNEL,
    DEFAULT_TIMEZONE,
    TARGET_TEAM_ID,
    UNKNOWN_HANDOFF_LABEL,
    EnvVar,
    Region,
    SeverityTier,
    TicketSource,
    TicketState,
)
from .exceptions import ConfigurationError

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class RegionConfig:
    """One support shift.

    Offsets are hours from local midnight. An end offset smaller than the
    start offset means the shift starts the previous evening.

    Attributes:
        key: Region identifier.
        label: Short display name used in the report ("US").
        header_label: Handoff direction shown in the report header.
        start_hour: Shift start, hours after local midnight.
        end_hour: Shift end, hours after local midnight.
        roster: Ordered display names of the people working the shift.
    """

    key: Region
    label: str
    header_label: str
    start_hour: int
    end_hour: int
    roster: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for hour in (self.start_hour, self.end_hour):
            if not 0 <= hour <= HOURS_PER_DAY:
                raise ConfigurationError(
                    f"Region {self.key}: offset {hour} is outside 0..{HOURS_PER_DAY}"
                )
        if self.duration_hours == 0:
            raise ConfigurationError(f"Region {self.key}: shift has zero length")

    @property
    def crosses_midnight(self) -> bool:
        return self.end_hour < self.start_hour

    @property
    def duration_hours(self) -> int:
        if self.crosses_midnight:
            return HOURS_PER_DAY - self.start_hour + self.end_hour
        return self.end_hour - self.start_hour


@dataclass(frozen=True)
class ClassifierConfig:
    """Fixed predicate tables used by the classifier."""

    target_team_id: str = TARGET_TEAM_ID
    open_states: frozenset[str] = frozenset(
        {
            TicketState.NEW,
            TicketState.WAITING_ON_YOU,
            TicketState.WAITING_ON_CUSTOMER,
            TicketState.ON_HOLD,
        }
    )
    severity_tiers: dict[str, SeverityTier] = field(
        default_factory=lambda: {
            "urgent": SeverityTier.P0,
            "high": SeverityTier.P1,
            "medium": SeverityTier.P2,
            "low": SeverityTier.P3,
        }
    )
    high_tiers: frozenset[SeverityTier] = frozenset({SeverityTier.P0, SeverityTier.P1})
    low_tiers: frozenset[SeverityTier] = frozenset({SeverityTier.P2, SeverityTier.P3})
    handoff_labels: dict[str, str] = field(
        default_factory=lambda: {
            "america_apac": "APAC",
            "apac_emea": "EMEA",
            "emea_america": "America",
        }
    )
    unknown_handoff_label: str = UNKNOWN_HANDOFF_LABEL
    community_source: str = TicketSource.DISCORD
    aged_days: int = DEFAULT_AGED_DAYS
    priority_field: str = CF_PRIORITY
    handoff_field: str = CF_HANDOFF_REGION
    meeting_field: str = CF_MEETING_REQUIRED


@dataclass(frozen=True)
class ScanSettings:
    """Paging limits and retry policy for one scan."""

    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES_QUEUE_SCAN
    inter_page_delay: float = DEFAULT_INTER_PAGE_DELAY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_base: float = DEFAULT_BACKOFF_BASE
    backoff_cap: float = DEFAULT_BACKOFF_CAP


def default_regions() -> dict[Region, RegionConfig]:
    """Shift definitions in Pacific time."""
    return {
        Region.US: RegionConfig(
            key=Region.US,
            label="US",
            header_label="US to APAC",
            start_hour=9,
            end_hour=18,
            roster=("Feran Morgan", "Tassia Shibuya", "Fariha Marzan"),
        ),
        Region.EMEA: RegionConfig(
            key=Region.EMEA,
            label="EMEA",
            header_label="EMEA to US",
            start_hour=1,
            end_hour=10,
            roster=("Dylan Bonar", "Tommy Lundy", "Robert Norrie"),
        ),
        Region.APAC: RegionConfig(
            key=Region.APAC,
            label="APAC",
            header_label="APAC to EMEA",
            start_hour=18,
            end_hour=3,
            roster=("Saurabh Lambe", "Chinmay Koratkar"),
        ),
    }


@dataclass(frozen=True)
class SnapshotConfig:
    """Everything one snapshot run needs, resolved before any network call."""

    pylon_token: str
    slack_token: str | None = None
    slack_channel: str = DEFAULT_SLACK_CHANNEL
    timezone: str = DEFAULT_TIMEZONE
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    breakdown_source: str = TicketSource.DISCORD
    regions: dict[Region, RegionConfig] = field(default_factory=default_regions)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    window_scan: ScanSettings = field(
        default_factory=lambda: ScanSettings(max_pages=DEFAULT_MAX_PAGES_WINDOW_SCAN)
    )
    queue_scan: ScanSettings = field(default_factory=ScanSettings)

    def region(self, key: Region | str) -> RegionConfig:
        try:
            return self.regions[Region(key)]
        except (KeyError, ValueError):
            raise ConfigurationError(
                f"Unknown region {key!r}; expected one of "
                f"{', '.join(r.value for r in self.regions)}"
            ) from None


def load_config(
    *,
    pylon_token: str | None,
    slack_token: str | None = None,
    slack_channel: str | None = None,
    lookback_days: int | None = None,
    require_slack: bool = True,
) -> SnapshotConfig:
    """Validate raw settings and build a SnapshotConfig.

    Args:
        pylon_token: Ticketing API bearer token.
        slack_token: Slack bot token; only required when publishing.
        slack_channel: Destination channel override.
        lookback_days: Queue scan lookback override.
        require_slack: Whether a Slack token must be present.

    Returns:
        SnapshotConfig: Validated configuration.

    Raises:
        ConfigurationError: A required value is missing or invalid.
    """
    if not pylon_token:
        raise ConfigurationError(f"Missing required env var: {EnvVar.PYLON_TOKEN}")
    if require_slack and not slack_token:
        raise ConfigurationError(
            f"Missing required env var: {EnvVar.SLACK_BOT_TOKEN}"
        )
    if lookback_days is None:
        lookback_days = DEFAULT_LOOKBACK_DAYS
    if lookback_days <= 0:
        raise ConfigurationError(
            f"{EnvVar.LOOKBACK_DAYS} must be a positive number of days, got {lookback_days}"
        )

    return SnapshotConfig(
        pylon_token=pylon_token,
        slack_token=slack_token,
        slack_channel=slack_channel or DEFAULT_SLACK_CHANNEL,
        lookback_days=lookback_days,
    )
