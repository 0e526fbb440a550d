"""Internet reachability check with a fallback endpoint."""

from __future__ import annotations

import logging
import time

import requests

from opencode_diag.models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

CHECK_NAME = "INTERNET"
PRIMARY_URL = "https://www.google.com"
FALLBACK_URL = "https://1.1.1.1"
INTERNET_TIMEOUT_SECS = 5
SLOW_PING_MS = 2000


def _reachable(url: str, timeout: float) -> bool:
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException:
        logger.debug("GET %s failed", url, exc_info=True)
        return False
    return 200 <= response.status_code <= 299


def check_internet(timeout: float = INTERNET_TIMEOUT_SECS) -> CheckResult:
    start = time.monotonic()
    primary_ok = _reachable(PRIMARY_URL, timeout)
    elapsed_ms = int((time.monotonic() - start) * 1000)

    if primary_ok:
        status = CheckStatus.WARNING if elapsed_ms > SLOW_PING_MS else CheckStatus.OK
        return CheckResult(CHECK_NAME, status, f"PING: {elapsed_ms}ms :: google.com reachable")

    if _reachable(FALLBACK_URL, timeout):
        return CheckResult(CHECK_NAME, CheckStatus.WARNING, "google.com unreachable, cloudflare OK")
    return CheckResult(CHECK_NAME, CheckStatus.ERROR, "No internet connection")
