# bms_dashboard/services/acquisition.py

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, wait
from typing import Dict, Optional

from bms_dashboard.errors import FetchFailed, LegError, UnexpectedFailure
from bms_dashboard.models.snapshot import Snapshot
from bms_dashboard.services.fetcher import EndpointFetcher, HttpFetcher
from bms_dashboard.services.legs import (
    AcquisitionSettings,
    cell_temperature_leg,
    cell_voltage_leg,
    main_leg,
)

logger = logging.getLogger(__name__)

# Join order; the first failing leg in this order is reported.
LEGS = ("main", "ucell", "tcell")


def _spawn(leg: str, fn, *args) -> Future:
    """Run one leg on its own daemon thread and return its future.

    A leg abandoned mid-request must not hold up interpreter exit.
    """
    future: Future = Future()

    def _run():
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    threading.Thread(target=_run, name=f"bms-leg-{leg}", daemon=True).start()
    return future


class FetchRequest:
    """
    One in-flight poll cycle.

    ``is_finished`` may be polled freely; ``join`` consumes the request.
    Dropping a request without joining abandons the legs.
    """

    def __init__(self, address: str, futures: Dict[str, Future]):
        self.address = address
        self._futures: Optional[Dict[str, Future]] = futures

    # ------------------------------------------------------------------
    def is_finished(self) -> bool:
        futures = self._futures
        if futures is None:
            return True
        return all(f.done() for f in futures.values())

    # ------------------------------------------------------------------
    def join(self) -> Snapshot:
        futures = self._futures
        if futures is None:
            raise RuntimeError("fetch request already joined")
        self._futures = None

        wait(futures.values())

        results = {}
        for leg in LEGS:
            exc = futures[leg].exception()
            if exc is None:
                results[leg] = futures[leg].result()
            elif isinstance(exc, LegError):
                logger.warning("%s leg failed for %s: %s", leg, self.address, exc)
                raise FetchFailed(leg, exc) from exc
            else:
                logger.error(
                    "%s leg crashed for %s", leg, self.address,
                    exc_info=(type(exc), exc, exc.__traceback__),
                )
                raise UnexpectedFailure(leg, exc) from exc

        return Snapshot(main=results["main"], ucell=results["ucell"], tcell=results["tcell"])


def fetch(
    address: str,
    sanitize: bool,
    *,
    fetcher: Optional[EndpointFetcher] = None,
    settings: Optional[AcquisitionSettings] = None,
) -> FetchRequest:
    """Start one poll cycle against ``address`` and return immediately."""
    fetcher = fetcher or HttpFetcher()
    settings = settings or AcquisitionSettings()

    futures = {
        "main": _spawn("main", main_leg, fetcher, address),
        "ucell": _spawn("ucell", cell_voltage_leg, fetcher, address, sanitize, settings.voltage),
        "tcell": _spawn("tcell", cell_temperature_leg, fetcher, address, sanitize, settings.temperature),
    }

    logger.debug("poll cycle started for %s (sanitize=%s)", address, sanitize)
    return FetchRequest(address, futures)
