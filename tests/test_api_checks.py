from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests

from conftest import FakeResponse
from opencode_diag.core import api_checks
from opencode_diag.core.api_checks import (
    CLAUDE,
    GOOGLE_AI,
    OPENAI,
    check_claude_api,
    check_google_api,
    check_openai_api,
    classify_response,
    extract_error_message,
)
from opencode_diag.models import CheckStatus

TARGETS = [CLAUDE, OPENAI, GOOGLE_AI]


@pytest.mark.parametrize("target", TARGETS, ids=lambda t: t.name)
@pytest.mark.parametrize("code", [200, 201, 204, 250, 299])
def test_2xx_is_ok(target, code) -> None:
    status, details = classify_response(target, code, 120)
    assert status is CheckStatus.OK
    assert details == f"{target.host} :: reachable :: 120ms"


@pytest.mark.parametrize("target", TARGETS, ids=lambda t: t.name)
@pytest.mark.parametrize("code", [500, 501, 502, 503, 504, 529, 599])
def test_5xx_is_error(target, code) -> None:
    status, _ = classify_response(target, code, 120)
    assert status is CheckStatus.ERROR


@pytest.mark.parametrize("target", TARGETS, ids=lambda t: t.name)
def test_429_is_rate_limited_warning(target) -> None:
    status, details = classify_response(target, 429, 50)
    assert status is CheckStatus.WARNING
    assert details == f"{target.host} :: 429 :: rate limited"


@pytest.mark.parametrize("target", TARGETS, ids=lambda t: t.name)
@pytest.mark.parametrize("code", [401, 403])
def test_auth_challenge_counts_as_reachable(target, code) -> None:
    status, details = classify_response(target, code, 80)
    assert status is CheckStatus.OK
    assert details.endswith("(auth required)")


def test_400_is_auth_only_for_google() -> None:
    assert classify_response(GOOGLE_AI, 400, 80)[1].endswith("(auth required)")
    status, details = classify_response(CLAUDE, 400, 80)
    assert status is CheckStatus.OK
    assert "auth required" not in details


def test_overload_codes_have_distinct_wording() -> None:
    assert classify_response(CLAUDE, 503, 10)[1] == "api.anthropic.com :: 503 :: server at capacity"
    assert classify_response(CLAUDE, 529, 10)[1] == "api.anthropic.com :: 529 :: overloaded"
    assert classify_response(CLAUDE, 500, 10)[1] == "api.anthropic.com :: 500 :: server error"


def test_other_codes_depend_on_latency() -> None:
    assert classify_response(CLAUDE, 404, 2999)[0] is CheckStatus.OK
    status, details = classify_response(CLAUDE, 404, 3000)
    assert status is CheckStatus.WARNING
    assert details == "api.anthropic.com :: slow :: 3000ms"


def test_claude_uses_head_request(fake_http) -> None:
    fake_http.responses[CLAUDE.url] = FakeResponse(401)

    result = check_claude_api()

    assert fake_http.calls == [("HEAD", "https://api.anthropic.com")]
    assert result.name == "CLAUDE API"
    assert result.status is CheckStatus.OK


def test_timeout_and_connection_failure_are_distinguished(fake_http) -> None:
    fake_http.responses[CLAUDE.url] = requests.exceptions.ReadTimeout("slow")
    fake_http.responses[GOOGLE_AI.url] = requests.exceptions.ConnectionError("refused")

    claude = check_claude_api()
    google = check_google_api()

    assert claude.status is CheckStatus.ERROR
    assert claude.details == "api.anthropic.com :: timeout"
    assert google.status is CheckStatus.ERROR
    assert google.details == "googleapis.com :: connection failed"


def test_connect_timeout_reports_timeout(fake_http) -> None:
    fake_http.responses[OPENAI.url] = requests.exceptions.ConnectTimeout("dns")
    assert check_openai_api().details == "api.openai.com :: timeout"


def test_other_request_errors_keep_their_text(fake_http) -> None:
    fake_http.responses[OPENAI.url] = requests.exceptions.InvalidURL("bad url")
    result = check_openai_api()
    assert result.status is CheckStatus.ERROR
    assert result.details == "api.openai.com :: bad url"


def test_openai_attaches_upstream_message(fake_http) -> None:
    body = '{"error": {"message": "You didn\'t provide an API key.", "type": "invalid_request_error"}}'
    fake_http.responses[OPENAI.url] = FakeResponse(401, body)

    result = check_openai_api()

    assert result.status is CheckStatus.OK
    assert result.message == "You didn't provide an API key."


def test_google_never_attaches_message(fake_http) -> None:
    fake_http.responses[GOOGLE_AI.url] = FakeResponse(403, '{"message": "denied"}')
    assert check_google_api().message is None


@pytest.mark.parametrize(
    "body, expected",
    [
        ('{"error": {"message": "nested"}, "message": "top"}', "nested"),
        ('{"error": "bare string", "message": "top"}', "bare string"),
        ('{"error": {"code": 1}, "message": "top"}', "top"),
        ('{"message": "top"}', "top"),
        ('{"detail": "nothing useful"}', None),
        ("[1, 2]", None),
        ("<html>not json</html>", None),
        ("", None),
    ],
)
def test_extract_error_message(body, expected) -> None:
    assert extract_error_message(body) == expected


def test_latency_drives_slow_warning(fake_http, monkeypatch) -> None:
    ticks = iter([100.0, 104.5])
    monkeypatch.setattr(api_checks, "time", SimpleNamespace(monotonic=lambda: next(ticks)))
    fake_http.responses[CLAUDE.url] = FakeResponse(404)

    result = check_claude_api()

    assert result.status is CheckStatus.WARNING
    assert result.details == "api.anthropic.com :: slow :: 4500ms"
