"""GPU monitoring.

Video controllers are enumerated through WMI (via PowerShell's CIM cmdlets),
so real monitoring only exists on Windows. Other platforms get a probe that
always reports the check as inactive. Utilization comes from ``nvidia-smi``
when it is installed; WMI does not expose live usage.
"""

from __future__ import annotations

import json
import logging
import platform
import re
import subprocess
from dataclasses import dataclass
from typing import Callable

from opencode_diag.models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

CHECK_NAME = "GPU"
GPU_QUERY_TIMEOUT_SECS = 8

VIDEO_CONTROLLER_QUERY = [
    "powershell",
    "-NoProfile",
    "-NonInteractive",
    "-Command",
    "Get-CimInstance Win32_VideoController | Select-Object Name, AdapterRAM | ConvertTo-Json -Compress",
]
NVIDIA_SMI_QUERY = [
    "nvidia-smi",
    "--query-gpu=name,utilization.gpu",
    "--format=csv,noheader,nounits",
]

CommandRunner = Callable[[list[str]], str]


class GpuQueryError(Exception):
    """Video controllers could not be enumerated."""


@dataclass
class GpuInfo:
    name: str
    usage_percent: float | None = None
    memory_mb: int | None = None


def _run_command(cmd: list[str]) -> str:
    completed = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        check=True,
        timeout=GPU_QUERY_TIMEOUT_SECS,
        creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
    )
    return completed.stdout


class GpuProbe:
    """Produces the GPU check result for one platform."""

    def check(self) -> CheckResult:
        raise NotImplementedError


class UnsupportedGpuProbe(GpuProbe):
    def check(self) -> CheckResult:
        return CheckResult(CHECK_NAME, CheckStatus.INACTIVE, "GPU monitoring only available on Windows")


class WindowsGpuProbe(GpuProbe):
    def __init__(self, runner: CommandRunner = _run_command):
        self._run = runner

    def check(self) -> CheckResult:
        try:
            gpus = self.list_gpus()
        except GpuQueryError as e:
            return CheckResult(CHECK_NAME, CheckStatus.WARNING, f"Could not get GPU usage: {e}")

        if not gpus:
            return CheckResult(CHECK_NAME, CheckStatus.INACTIVE, "No GPU detected")

        parts = []
        for gpu in gpus:
            name = shorten_gpu_name(gpu.name)
            if gpu.usage_percent is not None:
                parts.append(f"{name}: {int(gpu.usage_percent)}%")
            else:
                parts.append(name)

        usages = [g.usage_percent for g in gpus if g.usage_percent is not None]
        return CheckResult(CHECK_NAME, classify_gpu_usage(max(usages, default=0.0)), " :: ".join(parts))

    def list_gpus(self) -> list[GpuInfo]:
        gpus = self._query_video_controllers()
        usage = self._query_nvidia_usage()
        for gpu in gpus:
            pending = usage.get(gpu.name.strip())
            if pending:
                gpu.usage_percent = pending.pop(0)
        return gpus

    def _query_video_controllers(self) -> list[GpuInfo]:
        try:
            output = self._run(VIDEO_CONTROLLER_QUERY)
        except FileNotFoundError as e:
            raise GpuQueryError("PowerShell not available") from e
        except subprocess.TimeoutExpired as e:
            raise GpuQueryError("WMI query timed out") from e
        except subprocess.CalledProcessError as e:
            raise GpuQueryError(f"WMI query failed (exit {e.returncode})") from e
        except OSError as e:
            raise GpuQueryError(f"WMI query failed: {e}") from e

        output = output.strip()
        if not output:
            return []
        try:
            data = json.loads(output)
        except ValueError as e:
            raise GpuQueryError("WMI returned unreadable data") from e
        # ConvertTo-Json emits a bare object for a single controller
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise GpuQueryError("WMI returned unexpected data")

        gpus: list[GpuInfo] = []
        for entry in data:
            if not isinstance(entry, dict) or not entry.get("Name"):
                continue
            ram = entry.get("AdapterRAM")
            gpus.append(GpuInfo(
                name=str(entry["Name"]),
                memory_mb=ram // (1024 * 1024) if isinstance(ram, int) else None,
            ))
        return gpus

    def _query_nvidia_usage(self) -> dict[str, list[float]]:
        """Return utilization per card name; empty when nvidia-smi is absent."""
        try:
            output = self._run(NVIDIA_SMI_QUERY)
        except (OSError, subprocess.SubprocessError):
            logger.debug("nvidia-smi unavailable", exc_info=True)
            return {}

        usage: dict[str, list[float]] = {}
        for line in output.splitlines():
            name, sep, value = line.rpartition(",")
            if not sep:
                continue
            try:
                percent = float(value.strip())
            except ValueError:
                continue
            usage.setdefault(name.strip(), []).append(percent)
        return usage


def classify_gpu_usage(max_usage: float) -> CheckStatus:
    if max_usage > 95:
        return CheckStatus.ERROR
    if max_usage > 80:
        return CheckStatus.WARNING
    return CheckStatus.OK


def select_gpu_probe(system: str | None = None) -> GpuProbe:
    """Pick the GPU probe for this platform (called once at startup)."""
    system = system or platform.system()
    if system == "Windows":
        return WindowsGpuProbe()
    return UnsupportedGpuProbe()


def check_gpu() -> CheckResult:
    return select_gpu_probe().check()


def shorten_gpu_name(name: str) -> str:
    """Shorten vendor GPU names for display.

    "NVIDIA GeForce RTX 4080" -> "RTX 4080",
    "Intel(R) UHD Graphics 620" -> "Intel UHD 620".
    """
    name = name.strip()

    if "Intel" in name:
        if "UHD" in name:
            model = _number_after(name, "UHD")
            return f"Intel UHD {model}" if model else "Intel UHD"
        if "Iris" in name:
            return "Intel Iris"
        return "Intel GPU"

    if "NVIDIA" in name or "GeForce" in name:
        for series in ("RTX", "GTX"):
            if series in name:
                model = _model_after(name, series)
                if model:
                    return f"{series} {model}"
        return name.replace("NVIDIA ", "").replace("GeForce ", "")

    if "AMD" in name or "Radeon" in name:
        if "RX" in name:
            model = _model_after(name, "RX")
            if model:
                return f"RX {model}"
        return name.replace("AMD ", "")

    if len(name) > 20:
        return name[:20] + "..."
    return name


def _number_after(name: str, marker: str) -> str | None:
    after = name[name.find(marker) + len(marker):]
    m = re.match(r"\D*(\d+)", after)
    return m.group(1) if m else None


def _model_after(name: str, marker: str) -> str | None:
    after = name[name.find(marker) + len(marker):]
    m = re.match(r"\s*([A-Za-z0-9 ]*)", after)
    model = m.group(1).strip() if m else ""
    return model or None
