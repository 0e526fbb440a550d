from __future__ import annotations

import threading

import pytest

from conftest import make_report
from opencode_diag.config.settings import DiagnosticSettings
from opencode_diag.core.gpu import UnsupportedGpuProbe
from opencode_diag.core.session import (
    STATUS_ISSUE,
    STATUS_READY,
    STATUS_RUNNING,
    DiagnosticSession,
)
from opencode_diag.models import CheckStatus


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class BlockingRunner:
    """Runner that holds each run until released."""

    def __init__(self, status: CheckStatus = CheckStatus.WARNING) -> None:
        self.calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        self.status = status

    def __call__(self, settings: DiagnosticSettings):
        self.calls += 1
        self.started.set()
        self.release.wait(5)
        report = make_report(internet=self.status)
        report.diagnosis = "All systems operational."
        return report


def _session(runner, settings=None, clock=None, **kwargs) -> DiagnosticSession:
    return DiagnosticSession(
        settings=settings or DiagnosticSettings(),
        runner=runner,
        gpu_probe=UnsupportedGpuProbe(),
        clock=clock or FakeClock(),
        **kwargs,
    )


def test_second_request_while_running_is_noop() -> None:
    runner = BlockingRunner()
    session = _session(runner)
    before = session.report

    assert session.request_run() is True
    assert runner.started.wait(5)
    assert session.is_running
    assert session.request_run() is False
    assert session.report is before

    runner.release.set()
    assert session.wait(5)
    assert runner.calls == 1


def test_poll_hands_over_report_and_logs_once() -> None:
    runner = BlockingRunner()
    runner.release.set()
    session = _session(runner)

    assert session.poll() is False
    session.request_run()
    session.wait(5)

    assert session.poll() is True
    assert session.report.internet.status is CheckStatus.WARNING
    assert session.last_refresh == 1000.0
    assert list(session.error_log.get("INTERNET").times) == ["10:00"]

    assert session.poll() is False
    assert len(session.error_log.get("INTERNET").times) == 1


def test_status_text() -> None:
    runner = BlockingRunner()
    session = _session(runner)
    assert session.status_text == STATUS_READY

    session.request_run()
    runner.started.wait(5)
    assert session.status_text == STATUS_RUNNING

    runner.release.set()
    session.wait(5)
    session.poll()
    assert session.status_text == STATUS_READY

    session.report.diagnosis = "No internet connection. Check your network."
    assert session.status_text == STATUS_ISSUE


def test_failed_run_keeps_previous_report() -> None:
    def broken(settings):
        raise RuntimeError("boom")

    session = _session(broken)
    before = session.report

    session.request_run()
    session.wait(5)

    assert session.poll() is False
    assert session.report is before
    assert not session.is_running


def test_on_complete_called_after_run() -> None:
    done = threading.Event()
    runner = BlockingRunner()
    runner.release.set()
    session = _session(runner, on_complete=done.set)

    session.request_run()

    assert done.wait(5)
    assert not session.is_running


def test_runs_use_a_settings_snapshot() -> None:
    seen = []

    def runner(settings):
        seen.append(settings)
        return make_report()

    settings = DiagnosticSettings()
    session = _session(runner, settings=settings)
    session.request_run()
    session.wait(5)

    assert seen[0] == settings
    assert seen[0] is not settings


def test_auto_refresh_fires_when_interval_elapsed() -> None:
    clock = FakeClock()
    runner = BlockingRunner()
    runner.release.set()
    settings = DiagnosticSettings(auto_refresh=True, refresh_interval_secs=30)
    session = _session(runner, settings=settings, clock=clock)

    assert not session.auto_refresh_due()  # never completed a run yet

    session.request_run()
    session.wait(5)
    session.poll()
    assert runner.calls == 1

    clock.now += 29
    session.poll()
    assert runner.calls == 1
    assert session.timing_text == "LAST: 29s ago | NEXT: 1s"

    clock.now += 1
    session.poll()
    session.wait(5)
    assert runner.calls == 2


def test_auto_refresh_disabled() -> None:
    clock = FakeClock()
    runner = BlockingRunner()
    runner.release.set()
    session = _session(runner, clock=clock)

    session.request_run()
    session.wait(5)
    session.poll()
    clock.now += 3600
    session.poll()

    assert runner.calls == 1
    assert session.timing_text == "LAST: 60m ago"


def test_failed_thread_start_clears_running_flag(monkeypatch) -> None:
    def refuse(self):
        raise RuntimeError("can't start new thread")

    runner = BlockingRunner()
    runner.release.set()
    session = _session(runner)
    monkeypatch.setattr(threading.Thread, "start", refuse)

    with pytest.raises(RuntimeError):
        session.request_run()
    assert not session.is_running

    monkeypatch.undo()
    assert session.request_run() is True
    session.wait(5)
    assert runner.calls == 1
