"""Check status color maps."""

from rich.text import Text

from opencode_diag.models import CheckStatus

STATUS_COLORS: dict[CheckStatus, str] = {
    CheckStatus.OK: "green",
    CheckStatus.WARNING: "yellow",
    CheckStatus.ERROR: "red bold",
    CheckStatus.UNKNOWN: "dim",
    CheckStatus.INACTIVE: "dim",
}


def styled_status(status: CheckStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.label}[/{color}]"


def styled_diagnosis(diagnosis: str, has_issues: bool) -> Text:
    color = "yellow" if has_issues else "green"
    return Text(diagnosis, style=color)
