"""Rule table turning a populated report into one diagnosis line.

Rules are evaluated in order and the first match wins: local machine health
masks network health, which masks upstream API health, which masks the
OpenCode process itself.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from opencode_diag.models import CheckStatus
from opencode_diag.models.report import ALL_OK, DiagnosticReport


class DiagnosisRule(NamedTuple):
    name: str
    matches: Callable[[DiagnosticReport], bool]
    message: Callable[[DiagnosticReport], str]


def _status_is(attr: str, status: CheckStatus) -> Callable[[DiagnosticReport], bool]:
    def predicate(report: DiagnosticReport) -> bool:
        check = report.get(attr)
        return check is not None and check.status is status
    return predicate


def _details_contain(attr: str, status: CheckStatus, *needles: str) -> Callable[[DiagnosticReport], bool]:
    has_status = _status_is(attr, status)

    def predicate(report: DiagnosticReport) -> bool:
        return has_status(report) and any(n in report.get(attr).details for n in needles)
    return predicate


def _fixed(text: str) -> Callable[[DiagnosticReport], str]:
    return lambda report: text


def _issue(label: str, attr: str) -> Callable[[DiagnosticReport], str]:
    return lambda report: f"{label} issue: {report.get(attr).details}"


RULES: tuple[DiagnosisRule, ...] = (
    DiagnosisRule(
        "resources_critical",
        _status_is("local_resources", CheckStatus.ERROR),
        _fixed("System resources critical. Close other applications."),
    ),
    DiagnosisRule(
        "gpu_overloaded",
        _status_is("gpu", CheckStatus.ERROR),
        _fixed("GPU overloaded. Close GPU-heavy applications."),
    ),
    DiagnosisRule(
        "gpu_high_usage",
        _status_is("gpu", CheckStatus.WARNING),
        _fixed("High GPU usage detected. May affect performance."),
    ),
    DiagnosisRule(
        "no_internet",
        _status_is("internet", CheckStatus.ERROR),
        _fixed("No internet connection. Check your network."),
    ),
    DiagnosisRule(
        "claude_at_capacity",
        _details_contain("claude_api", CheckStatus.ERROR, "503", "capacity"),
        _fixed("Claude API is overloaded. Try again later."),
    ),
    DiagnosisRule(
        "claude_overloaded",
        _details_contain("claude_api", CheckStatus.ERROR, "529"),
        _fixed("Claude API overloaded (529). Try again in a few minutes."),
    ),
    DiagnosisRule(
        "claude_error",
        _status_is("claude_api", CheckStatus.ERROR),
        _issue("Claude API", "claude_api"),
    ),
    DiagnosisRule(
        "claude_rate_limited",
        _details_contain("claude_api", CheckStatus.WARNING, "429"),
        _fixed("Claude API rate limited. Wait a few minutes."),
    ),
    DiagnosisRule(
        "claude_slow",
        _status_is("claude_api", CheckStatus.WARNING),
        _fixed("Claude API is slow. May experience delays."),
    ),
    DiagnosisRule(
        "openai_error",
        _status_is("openai_api", CheckStatus.ERROR),
        _issue("OpenAI API", "openai_api"),
    ),
    DiagnosisRule(
        "opencode_down",
        _status_is("opencode", CheckStatus.ERROR),
        _fixed("OpenCode process not running."),
    ),
)


def matching_rule(
    report: DiagnosticReport, rules: tuple[DiagnosisRule, ...] = RULES,
) -> DiagnosisRule | None:
    for rule in rules:
        if rule.matches(report):
            return rule
    return None


def generate_diagnosis(
    report: DiagnosticReport, rules: tuple[DiagnosisRule, ...] = RULES,
) -> str:
    """Return the diagnosis sentence for the first matching rule."""
    rule = matching_rule(report, rules)
    if rule is None:
        return ALL_OK
    return rule.message(report)
