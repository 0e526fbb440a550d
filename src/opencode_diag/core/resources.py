"""Local CPU and memory sampling."""

from __future__ import annotations

import logging

import psutil

from opencode_diag.models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

CHECK_NAME = "LOCAL RESOURCES"
# psutil needs two samples to report a non-zero CPU figure.
CPU_SAMPLE_SECS = 0.2


def classify_usage(cpu_percent: float, mem_percent: float) -> CheckStatus:
    if cpu_percent > 90 or mem_percent > 95:
        return CheckStatus.ERROR
    if cpu_percent > 70 or mem_percent > 85:
        return CheckStatus.WARNING
    return CheckStatus.OK


def check_local_resources() -> CheckResult:
    try:
        cpu = psutil.cpu_percent(interval=CPU_SAMPLE_SECS)
        mem = psutil.virtual_memory().percent
    except (psutil.Error, OSError) as e:
        logger.debug("Resource sampling failed", exc_info=True)
        return CheckResult(CHECK_NAME, CheckStatus.WARNING, f"Could not sample resources: {e}")

    details = f"CPU: {int(cpu)}% :: RAM: {int(mem)}%"
    return CheckResult(CHECK_NAME, classify_usage(cpu, int(mem)), details)
