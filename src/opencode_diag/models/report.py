"""Diagnostic report model and its plain-text export."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Iterator

from opencode_diag.models import CheckResult, CheckStatus

if TYPE_CHECKING:
    from opencode_diag.config.settings import DiagnosticSettings

ALL_OK = "All systems operational."
REPORT_HEADER = "=== OpenCode Diagnostics Report ==="


@dataclass(frozen=True)
class ReportSlot:
    attr: str
    check_name: str
    flag: str
    placeholder: str


# Report order: local machine first, then network, upstream APIs, processes.
SLOTS: tuple[ReportSlot, ...] = (
    ReportSlot("local_resources", "LOCAL RESOURCES", "check_cpu_ram", "CPU :: RAM"),
    ReportSlot("gpu", "GPU", "check_gpu", "Video card status"),
    ReportSlot("internet", "INTERNET", "check_internet", "Connectivity check"),
    ReportSlot("claude_api", "CLAUDE API", "check_claude", "api.anthropic.com"),
    ReportSlot("openai_api", "OPENAI API", "check_openai", "api.openai.com"),
    ReportSlot("google_api", "GOOGLE AI", "check_google_ai", "googleapis.com"),
    ReportSlot("opencode", "OPENCODE", "check_opencode", "Process status"),
    ReportSlot("terminals", "TERMINALS", "check_terminals", "cmd, powershell, wt"),
)


@dataclass
class DiagnosticReport:
    local_resources: CheckResult | None = None
    gpu: CheckResult | None = None
    internet: CheckResult | None = None
    claude_api: CheckResult | None = None
    openai_api: CheckResult | None = None
    google_api: CheckResult | None = None
    opencode: CheckResult | None = None
    terminals: CheckResult | None = None
    diagnosis: str | None = None
    timestamp: str | None = None

    def run_with_settings(self, settings: DiagnosticSettings) -> None:
        """Populate this report in place from the enabled probes."""
        from opencode_diag.core.engine import run_with_settings

        fresh = run_with_settings(settings)
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))

    def get(self, attr: str) -> CheckResult | None:
        return getattr(self, attr)

    def checks(self) -> Iterator[CheckResult]:
        """Yield populated check results in report order."""
        for slot in SLOTS:
            check = getattr(self, slot.attr)
            if check is not None:
                yield check

    def worst_status(self) -> CheckStatus | None:
        worst: CheckStatus | None = None
        for check in self.checks():
            if worst is None or check.status.severity > worst.severity:
                worst = check.status
        return worst

    @property
    def has_issues(self) -> bool:
        return self.diagnosis is not None and self.diagnosis != ALL_OK

    def to_text_report(self) -> str:
        """Render the report as plain text for the clipboard."""
        parts = [f"{REPORT_HEADER}\n"]
        if self.timestamp is not None:
            parts.append(f"Time: {self.timestamp}\n")
        parts.append("\n")

        for check in self.checks():
            parts.append(format_check_for_report(check))

        if self.diagnosis is not None:
            parts.append(f"\nDIAGNOSIS: {self.diagnosis}\n")

        return "".join(parts)


def format_check_for_report(check: CheckResult) -> str:
    lines = [
        f"{check.status.icon} {check.name}\n",
        f"     {check.details}\n",
    ]
    if check.message is not None:
        lines.append(f'     Message: "{check.message}"\n')
    lines.append("\n")
    return "".join(lines)
