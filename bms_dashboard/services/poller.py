# bms_dashboard/services/poller.py

from __future__ import annotations

import time
from typing import Callable, Optional

from bms_dashboard.errors import AcquisitionError
from bms_dashboard.models.snapshot import Snapshot
from bms_dashboard.services import acquisition
from bms_dashboard.services.acquisition import FetchRequest

MIN_POLL_RATE_MS = 100
MAX_POLL_RATE_MS = 10000


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp_poll_rate(value: int) -> int:
    return max(MIN_POLL_RATE_MS, min(MAX_POLL_RATE_MS, value))


class Poller:
    """
    Drives one controller on a fixed cadence without ever blocking.

    At most one request is outstanding. A failed cycle keeps the previous
    snapshot and records the error; the next scheduled poll is the retry.
    """

    def __init__(
        self,
        address: str,
        sanitize: bool = True,
        poll_rate_ms: int = 2000,
        fetch: Optional[Callable[[str, bool], FetchRequest]] = None,
    ):
        self.address = address
        self.sanitize = sanitize
        self.poll_rate_ms = clamp_poll_rate(poll_rate_ms)
        self._fetch = fetch or acquisition.fetch
        self.last_poll = 0
        self.request: Optional[FetchRequest] = None
        self.snapshot: Optional[Snapshot] = None
        self.error: Optional[AcquisitionError] = None

    @property
    def busy(self) -> bool:
        return self.request is not None

    def tick(self, now: Optional[int] = None) -> bool:
        """Advance the poll state; return True when a request was just joined."""
        if self.request is not None:
            if not self.request.is_finished():
                return False
            request, self.request = self.request, None
            try:
                self.snapshot = request.join()
                self.error = None
            except AcquisitionError as exc:
                self.error = exc
            return True

        now = now_ms() if now is None else now
        if self.last_poll + self.poll_rate_ms < now:
            self.request = self._fetch(self.address, self.sanitize)
            self.last_poll = now
        return False
