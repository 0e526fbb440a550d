"""Reachability checks for the upstream AI APIs."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass

import requests

from opencode_diag.models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

API_TIMEOUT_SECS = 10
SLOW_RESPONSE_MS = 3000


@dataclass(frozen=True)
class ApiTarget:
    name: str
    host: str
    url: str
    method: str = "GET"
    # An auth challenge still proves the service is up.
    auth_codes: frozenset[int] = frozenset({401, 403})
    extract_message: bool = False


CLAUDE = ApiTarget(
    name="CLAUDE API",
    host="api.anthropic.com",
    url="https://api.anthropic.com",
    method="HEAD",
)
OPENAI = ApiTarget(
    name="OPENAI API",
    host="api.openai.com",
    url="https://api.openai.com/v1/models",
    extract_message=True,
)
GOOGLE_AI = ApiTarget(
    name="GOOGLE AI",
    host="googleapis.com",
    url="https://generativelanguage.googleapis.com/v1beta/models",
    auth_codes=frozenset({400, 401, 403}),
)


def classify_response(
    target: ApiTarget, status_code: int, elapsed_ms: int,
) -> tuple[CheckStatus, str]:
    """Map an HTTP status code and latency to a check status and detail line."""
    host = target.host
    if 200 <= status_code <= 399:
        return CheckStatus.OK, f"{host} :: reachable :: {elapsed_ms}ms"
    if status_code in target.auth_codes:
        return CheckStatus.OK, f"{host} :: reachable :: {elapsed_ms}ms (auth required)"
    if status_code == 429:
        return CheckStatus.WARNING, f"{host} :: {status_code} :: rate limited"
    if status_code == 503:
        return CheckStatus.ERROR, f"{host} :: {status_code} :: server at capacity"
    if status_code == 529:
        return CheckStatus.ERROR, f"{host} :: {status_code} :: overloaded"
    if 500 <= status_code <= 599:
        return CheckStatus.ERROR, f"{host} :: {status_code} :: server error"
    if elapsed_ms < SLOW_RESPONSE_MS:
        return CheckStatus.OK, f"{host} :: reachable :: {elapsed_ms}ms"
    return CheckStatus.WARNING, f"{host} :: slow :: {elapsed_ms}ms"


def extract_error_message(body: str) -> str | None:
    """Pull a human-readable error message out of a JSON error body.

    Tries ``error.message``, then a bare string ``error``, then ``message``.
    """
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    error = data.get("error")
    if isinstance(error, dict):
        msg = error.get("message")
        if isinstance(msg, str):
            return msg
    elif isinstance(error, str):
        return error

    msg = data.get("message")
    if isinstance(msg, str):
        return msg
    return None


def check_api(target: ApiTarget, timeout: float = API_TIMEOUT_SECS) -> CheckResult:
    """Issue one request to the target and classify the outcome."""
    start = time.monotonic()
    try:
        response = requests.request(target.method, target.url, timeout=timeout)
    except requests.exceptions.Timeout:
        return CheckResult(target.name, CheckStatus.ERROR, f"{target.host} :: timeout")
    except requests.exceptions.ConnectionError:
        logger.debug("Connection to %s failed", target.host, exc_info=True)
        return CheckResult(target.name, CheckStatus.ERROR, f"{target.host} :: connection failed")
    except requests.exceptions.RequestException as e:
        logger.debug("Request to %s failed", target.host, exc_info=True)
        return CheckResult(target.name, CheckStatus.ERROR, f"{target.host} :: {e}")
    elapsed_ms = int((time.monotonic() - start) * 1000)

    status, details = classify_response(target, response.status_code, elapsed_ms)
    result = CheckResult(target.name, status, details)

    if target.extract_message:
        message = extract_error_message(response.text or "")
        if message:
            result = result.with_message(message)
    return result


def check_claude_api() -> CheckResult:
    return check_api(CLAUDE)


def check_openai_api() -> CheckResult:
    return check_api(OPENAI)


def check_google_api() -> CheckResult:
    return check_api(GOOGLE_AI)
