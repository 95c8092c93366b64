"""Early-stop policies that bound how deep a scan pages.

Both policies assume the API returns issues newest first, so once a page's
oldest issue falls behind the cutoff no later page can be relevant.
"""

from datetime import datetime, timedelta

from .models import Window


class CutoffStopPolicy:
    """Stop once a page's oldest creation time is older than ``cutoff``.

    Attributes:
        cutoff: UTC instant; pages reaching strictly before it end the scan.
    """

    def __init__(self, *, cutoff: datetime):
        self.cutoff = cutoff

    def should_stop(self, page_oldest: datetime | None, page_index: int = 0) -> bool:
        """Decide whether the scan should halt after this page.

        Args:
            page_oldest: Oldest parsable creation time on the page.
            page_index: 1-based index of the page just processed. Cutoff
                policies decide on the timestamp alone; the index is part of
                the call so policies that bound depth by page count can share
                the scanner interface.

        Returns:
            bool: True if no later page can hold relevant issues.
        """
        if page_oldest is None:
            return False
        return page_oldest < self.cutoff

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cutoff={self.cutoff.isoformat()})"


class BoundedWindowStop(CutoffStopPolicy):
    """Stop once paging has moved past the start of a known window."""

    def __init__(self, *, window: Window):
        super().__init__(cutoff=window.start)
        self.window = window


class LookbackHorizonStop(CutoffStopPolicy):
    """Stop once paging reaches issues older than a lookback horizon."""

    def __init__(self, *, now: datetime, lookback_days: int):
        super().__init__(cutoff=now - timedelta(days=lookback_days))
        self.lookback_days = lookback_days
