"""Shift window computation."""

from datetime import datetime, time, timedelta

import pytz
from loguru import logger

from .config import RegionConfig
from .constants import DEFAULT_TIMEZONE, LogMessage, Region
from .exceptions import ConfigurationError
from .models import Window


class TimeWindowCalculator:
    """Computes the UTC creation window for a region's shift.

    Offsets are applied to the local midnight of ``now`` as absolute hours,
    then everything is expressed in UTC so comparisons against ticket
    timestamps never depend on local clock arithmetic.

    Attributes:
        regions: Region definitions keyed by region.
        tz: Local time zone the shift offsets are measured in.
    """

    def __init__(
        self,
        *,
        regions: dict[Region, RegionConfig],
        timezone_name: str = DEFAULT_TIMEZONE,
    ):
        self.regions = regions
        try:
            self.tz = pytz.timezone(timezone_name)
        except pytz.UnknownTimeZoneError:
            raise ConfigurationError(f"Unknown time zone: {timezone_name}") from None

    def now(self) -> datetime:
        """Current time in the local zone, truncated to the second."""
        return datetime.now(self.tz).replace(microsecond=0)

    def to_local(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            return self.tz.localize(instant)
        return instant.astimezone(self.tz)

    def local_midnight_utc(self, now: datetime) -> datetime:
        """UTC instant of the local midnight that starts ``now``'s day."""
        local_day = self.to_local(now).date()
        midnight = self.tz.localize(datetime.combine(local_day, time.min))
        return midnight.astimezone(pytz.utc)

    def window_for(self, region: Region | str, now: datetime | None = None) -> Window:
        """Compute the shift window for ``region`` on ``now``'s local date.

        A cross-midnight shift ends on ``now``'s date; its start is derived
        by subtracting the shift length from the end so it lands on the
        previous evening.

        Args:
            region: Region key.
            now: Evaluation time; defaults to the current time.

        Returns:
            Window: Half-open UTC window.
        """
        try:
            cfg = self.regions[Region(region)]
        except (KeyError, ValueError):
            raise ConfigurationError(f"Unknown region {region!r}") from None

        midnight = self.local_midnight_utc(now or self.now())

        if cfg.crosses_midnight:
            end = midnight + timedelta(hours=cfg.end_hour)
            start = end - timedelta(hours=cfg.duration_hours)
        else:
            start = midnight + timedelta(hours=cfg.start_hour)
            end = midnight + timedelta(hours=cfg.end_hour)

        window = Window(start=start, end=end)
        logger.debug(
            LogMessage.WINDOW.format(cfg.label, start.isoformat(), end.isoformat())
        )
        return window
