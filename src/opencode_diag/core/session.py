"""Long-lived diagnostics session: background runs and auto-refresh.

The foreground (UI) side calls ``request_run`` and ``poll``. Each run happens
on its own background thread, which builds a complete report and hands it
over through a single-slot queue; the foreground never shares a mutable
report with the worker.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import replace
from typing import Callable

from opencode_diag.config.settings import DiagnosticSettings
from opencode_diag.core.engine import run_with_settings
from opencode_diag.core.gpu import GpuProbe, select_gpu_probe
from opencode_diag.models.error_log import ErrorLog
from opencode_diag.models.report import DiagnosticReport

logger = logging.getLogger(__name__)

STATUS_READY = "SYS.STATUS: READY"
STATUS_RUNNING = "SYS.STATUS: RUNNING DIAGNOSTICS..."
STATUS_ISSUE = "SYS.STATUS: ISSUE FOUND"

Runner = Callable[[DiagnosticSettings], DiagnosticReport]


class DiagnosticSession:
    """Owns settings, the last finished report, the error log and the
    auto-refresh clock."""

    def __init__(
        self,
        settings: DiagnosticSettings | None = None,
        runner: Runner | None = None,
        gpu_probe: GpuProbe | None = None,
        on_complete: Callable[[], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or DiagnosticSettings()
        self.report = DiagnosticReport()
        self.error_log = ErrorLog()
        self.last_refresh: float | None = None
        self._gpu_probe = gpu_probe or select_gpu_probe()
        self._runner = runner or self._default_runner
        self._on_complete = on_complete
        self._clock = clock
        self._results: queue.Queue[DiagnosticReport] = queue.Queue(maxsize=1)
        self._lock = threading.Lock()
        self._running = False
        self._worker: threading.Thread | None = None

    def _default_runner(self, settings: DiagnosticSettings) -> DiagnosticReport:
        return run_with_settings(settings, gpu_probe=self._gpu_probe)

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def request_run(self) -> bool:
        """Start a background run unless one is already in flight.

        Returns False (and does nothing) when a run is active.
        """
        with self._lock:
            if self._running:
                return False
            self._running = True

        snapshot = replace(self.settings)
        self._worker = threading.Thread(
            target=self._run, args=(snapshot,), name="diagnostics-run", daemon=True,
        )
        try:
            self._worker.start()
        except RuntimeError:
            with self._lock:
                self._running = False
            raise
        return True

    def _run(self, settings: DiagnosticSettings) -> None:
        try:
            report = self._runner(settings)
        except Exception:
            # Keep the previous report; only a complete new one replaces it.
            logger.exception("Diagnostics run failed")
            report = None
        if report is not None:
            # An unpolled older report is superseded.
            try:
                self._results.get_nowait()
            except queue.Empty:
                pass
            self._results.put_nowait(report)
        with self._lock:
            self._running = False
        if self._on_complete is not None:
            self._on_complete()

    def poll(self) -> bool:
        """One foreground cycle. Returns True when a finished report was taken.

        A finished report replaces the current one and is fed to the error log
        exactly once. Afterwards, an auto-refresh run starts if it is due.
        """
        completed = False
        try:
            report = self._results.get_nowait()
        except queue.Empty:
            pass
        else:
            self.report = report
            self.last_refresh = self._clock()
            self.error_log.process_report(report)
            completed = True

        if self.auto_refresh_due():
            self.request_run()
        return completed

    def auto_refresh_due(self) -> bool:
        if not self.settings.auto_refresh or self.last_refresh is None or self.is_running:
            return False
        return self.seconds_since_refresh() >= self.settings.refresh_interval_secs

    def seconds_since_refresh(self) -> int | None:
        if self.last_refresh is None:
            return None
        return int(self._clock() - self.last_refresh)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the in-flight run (if any) finishes. Returns False on timeout."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
            return not worker.is_alive()
        return True

    @property
    def status_text(self) -> str:
        if self.is_running:
            return STATUS_RUNNING
        if self.report.has_issues:
            return STATUS_ISSUE
        return STATUS_READY

    @property
    def timing_text(self) -> str:
        elapsed = self.seconds_since_refresh()
        if elapsed is None:
            return ""
        ago = f"{elapsed}s ago" if elapsed < 60 else f"{elapsed // 60}m ago"
        if self.settings.auto_refresh:
            remaining = max(self.settings.refresh_interval_secs - elapsed, 0)
            return f"LAST: {ago} | NEXT: {remaining}s"
        return f"LAST: {ago}"
