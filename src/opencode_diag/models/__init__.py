"""Data models for OpenCode Diagnostics."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace


class CheckStatus(enum.Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"
    UNKNOWN = "unknown"
    INACTIVE = "inactive"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def severity(self) -> int:
        """Rank used to pick the worst finding; only errors and warnings count."""
        if self is CheckStatus.ERROR:
            return 2
        if self is CheckStatus.WARNING:
            return 1
        return 0

    @property
    def is_problem(self) -> bool:
        return self.severity > 0


_LABELS: dict[CheckStatus, str] = {
    CheckStatus.OK: "OK",
    CheckStatus.WARNING: "WARN",
    CheckStatus.ERROR: "ERROR",
    CheckStatus.UNKNOWN: "...",
    CheckStatus.INACTIVE: "--",
}

_ICONS: dict[CheckStatus, str] = {
    CheckStatus.OK: "[OK]",
    CheckStatus.WARNING: "[!!]",
    CheckStatus.ERROR: "[XX]",
    CheckStatus.UNKNOWN: "[??]",
    CheckStatus.INACTIVE: "[--]",
}


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: CheckStatus
    details: str
    message: str | None = None

    def with_message(self, message: str) -> CheckResult:
        return replace(self, message=message)
