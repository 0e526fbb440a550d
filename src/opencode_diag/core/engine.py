"""Run the enabled probes and assemble a diagnostic report."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping

from opencode_diag.config.settings import DiagnosticSettings
from opencode_diag.core import api_checks, network, processes, resources
from opencode_diag.core.diagnosis import generate_diagnosis
from opencode_diag.core.gpu import GpuProbe, select_gpu_probe
from opencode_diag.models import CheckResult, CheckStatus
from opencode_diag.models.report import SLOTS, DiagnosticReport

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

Probe = Callable[[], CheckResult]


def default_probes(gpu_probe: GpuProbe | None = None) -> dict[str, Probe]:
    """Map each report slot to the probe that fills it."""
    gpu = gpu_probe or select_gpu_probe()
    return {
        "local_resources": resources.check_local_resources,
        "gpu": gpu.check,
        "internet": network.check_internet,
        "claude_api": api_checks.check_claude_api,
        "openai_api": api_checks.check_openai_api,
        "google_api": api_checks.check_google_api,
        "opencode": processes.check_opencode_process,
        "terminals": processes.check_terminals,
    }


def run_with_settings(
    settings: DiagnosticSettings,
    gpu_probe: GpuProbe | None = None,
    probes: Mapping[str, Probe] | None = None,
) -> DiagnosticReport:
    """Run every enabled probe in report order, then diagnose.

    Disabled checks leave their slot empty. Probes run one after another.
    """
    if probes is None:
        probes = default_probes(gpu_probe)

    report = DiagnosticReport(timestamp=datetime.now().strftime(TIMESTAMP_FORMAT))
    for slot in SLOTS:
        if not settings.is_enabled(slot.flag):
            continue
        probe = probes.get(slot.attr)
        if probe is None:
            continue
        setattr(report, slot.attr, _run_probe(slot.check_name, probe))

    report.diagnosis = generate_diagnosis(report)
    return report


def _run_probe(check_name: str, probe: Probe) -> CheckResult:
    try:
        return probe()
    except Exception as exc:
        logger.exception("Probe for %s failed", check_name)
        return CheckResult(check_name, CheckStatus.ERROR, f"Probe raised exception: {exc}")
