from __future__ import annotations

import pytest

from opencode_diag.models import CheckResult, CheckStatus
from opencode_diag.models.report import SLOTS, DiagnosticReport

SLOT_NAMES = {slot.attr: slot.check_name for slot in SLOTS}


def result(attr: str, status: CheckStatus, details: str = "details") -> CheckResult:
    return CheckResult(SLOT_NAMES[attr], status, details)


def make_report(timestamp: str | None = "2026-10-17 10:00:00", **slots: CheckStatus) -> DiagnosticReport:
    report = DiagnosticReport(timestamp=timestamp)
    for attr, status in slots.items():
        setattr(report, attr, result(attr, status))
    return report


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class FakeHttp:
    """Records requests and answers them from a url -> response/exception map."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.responses: dict[str, object] = {}

    def request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url))
        outcome = self.responses.get(url, FakeResponse(200))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)


@pytest.fixture
def fake_http(monkeypatch) -> FakeHttp:
    http = FakeHttp()
    monkeypatch.setattr("requests.request", http.request)
    monkeypatch.setattr("requests.get", http.get)
    return http
