"""Rolling, deduplicated log of failing and warning checks."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field

from opencode_diag.models.report import DiagnosticReport

MAX_TIMES = 5
TIME_PLACEHOLDER = "--:--"

_HHMM_RE = re.compile(r"^\d{2}:\d{2}$")


def time_key(timestamp: str | None) -> str:
    """Extract HH:MM from a ``YYYY-MM-DD HH:MM:SS`` timestamp.

    Absent, short or malformed timestamps map to a placeholder instead of
    raising.
    """
    if not timestamp or len(timestamp) < 16:
        return TIME_PLACEHOLDER
    key = timestamp[11:16]
    if not _HHMM_RE.match(key):
        return TIME_PLACEHOLDER
    return key


@dataclass
class ErrorEntry:
    name: str
    times: deque[str] = field(default_factory=lambda: deque(maxlen=MAX_TIMES))

    @classmethod
    def first(cls, name: str, time: str) -> ErrorEntry:
        entry = cls(name=name)
        entry.add_time(time)
        return entry

    def add_time(self, time: str) -> None:
        # deque(maxlen) drops from the right when pushing left
        self.times.appendleft(time)

    def format_times(self) -> str:
        return ", ".join(self.times)

    @property
    def last_seen(self) -> str:
        return self.times[0] if self.times else TIME_PLACEHOLDER


class ErrorLog:
    """Error and warning occurrences grouped by check name.

    Entries keep the order in which each name first failed.
    """

    def __init__(self) -> None:
        self.entries: list[ErrorEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    def clear(self) -> None:
        self.entries.clear()

    def get(self, name: str) -> ErrorEntry | None:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def process_report(self, report: DiagnosticReport) -> None:
        """Record every error or warning in a finished report.

        Call exactly once per report; a second call records it again.
        """
        time = time_key(report.timestamp)
        for check in report.checks():
            if check.status.is_problem:
                self._add_error(check.name, time)

    def _add_error(self, name: str, time: str) -> None:
        entry = self.get(name)
        if entry is not None:
            entry.add_time(time)
        else:
            self.entries.append(ErrorEntry.first(name, time))
