# bms_dashboard/tests/test_acquisition.py

import os
import subprocess
import sys
import textwrap
import time
from pathlib import Path

import pytest

from bms_dashboard.errors import (
    AcquisitionError,
    FetchFailed,
    MalformedDocument,
    TransportError,
    UnexpectedFailure,
)
from bms_dashboard.models.snapshot import Snapshot
from bms_dashboard.services.acquisition import LEGS, fetch
from bms_dashboard.tests.fake_fetcher import CannedFetcher, LatchedFetcher, default_pages


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_join_builds_snapshot():
    fetcher = CannedFetcher(default_pages())
    request = fetch("bms", True, fetcher=fetcher)
    snapshot = request.join()

    assert isinstance(snapshot, Snapshot)
    assert snapshot.main.voltage == 48.5
    assert snapshot.ucell.cell_voltage == (3700, 3710, 3690, 3705)
    assert snapshot.tcell.temp == (25.0, 26.0, 24.0, 25.5)
    assert sorted(resource for _, resource in fetcher.calls) == [
        "main_data.shtml",
        "tcell.shtml",
        "ucell.shtml",
    ]


def test_is_finished_tracks_every_leg():
    fetcher = LatchedFetcher(default_pages())
    request = fetch("bms", True, fetcher=fetcher)

    # All three legs run concurrently and block on their latches.
    for name in fetcher.entered:
        assert fetcher.entered[name].wait(timeout=5)
    assert not request.is_finished()

    fetcher.release("main_data.shtml")
    fetcher.release("tcell.shtml")
    time.sleep(0.05)
    assert not request.is_finished()
    assert not request.is_finished()  # polling has no side effects

    fetcher.release("ucell.shtml")
    assert _wait_until(request.is_finished)
    assert request.join().ucell.num_cells == 4


def test_join_is_one_shot():
    request = fetch("bms", True, fetcher=CannedFetcher(default_pages()))
    request.join()
    with pytest.raises(RuntimeError):
        request.join()


def test_leg_error_is_fetch_failed():
    pages = default_pages()
    pages["tcell.shtml"] = "<html>captive portal</html>"
    with pytest.raises(FetchFailed) as excinfo:
        fetch("bms", True, fetcher=CannedFetcher(pages)).join()

    assert excinfo.value.leg == "tcell"
    assert isinstance(excinfo.value.cause, MalformedDocument)


def test_first_failing_leg_in_order_is_reported():
    pages = {}  # every page 404s
    with pytest.raises(FetchFailed) as excinfo:
        fetch("bms", True, fetcher=CannedFetcher(pages)).join()

    assert excinfo.value.leg == LEGS[0]
    assert isinstance(excinfo.value.cause, TransportError)


def test_crashing_leg_is_unexpected_failure():
    pages = default_pages()
    pages["ucell.shtml"] = ZeroDivisionError("boom")
    with pytest.raises(UnexpectedFailure) as excinfo:
        fetch("bms", True, fetcher=CannedFetcher(pages)).join()

    assert excinfo.value.leg == "ucell"
    assert isinstance(excinfo.value.cause, ZeroDivisionError)
    assert not isinstance(excinfo.value, FetchFailed)
    assert isinstance(excinfo.value, AcquisitionError)


def test_join_waits_for_slow_legs_even_after_failure():
    pages = default_pages()
    pages["main_data.shtml"] = TransportError("http://bms/main_data.shtml", "HTTP 500")
    fetcher = LatchedFetcher(pages)
    request = fetch("bms", True, fetcher=fetcher)

    fetcher.release("main_data.shtml")
    fetcher.release("ucell.shtml")
    assert not request.is_finished()

    fetcher.release("tcell.shtml")
    with pytest.raises(FetchFailed) as excinfo:
        request.join()
    assert excinfo.value.leg == "main"
    assert request.is_finished()


def test_abandoned_request_does_not_block_new_cycles():
    fetcher = LatchedFetcher(default_pages())
    abandoned = fetch("bms", True, fetcher=fetcher)
    assert not abandoned.is_finished()

    fresh = fetch("bms", True, fetcher=CannedFetcher(default_pages()))
    assert fresh.join().main.state_of_charge == 65.0

    fetcher.release_all()
    assert _wait_until(abandoned.is_finished)


def test_abandoned_request_does_not_delay_process_exit():
    root = Path(__file__).resolve().parents[2]
    script = textwrap.dedent("""
        import time

        from bms_dashboard.services.acquisition import fetch
        from bms_dashboard.tests.fake_fetcher import CannedFetcher, default_pages


        class StalledFetcher(CannedFetcher):
            def get(self, address, resource):
                time.sleep(8)
                return super().get(address, resource)


        request = fetch("bms", True, fetcher=StalledFetcher(default_pages()))
        assert not request.is_finished()
    """)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH")]))

    started = time.monotonic()
    completed = subprocess.run(
        [sys.executable, "-c", script],
        cwd=root,
        env=env,
        capture_output=True,
        text=True,
        timeout=30,
    )
    elapsed = time.monotonic() - started

    assert completed.returncode == 0, completed.stderr
    assert elapsed < 3
