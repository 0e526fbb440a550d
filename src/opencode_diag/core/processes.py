"""Process checks: the OpenCode application and open terminals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

import psutil

from opencode_diag.models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

OPENCODE_PATTERN = "opencode"
OPENCODE_MEMORY_WARN_MB = 2000
TERMINAL_COUNT_WARN = 10

_UNIX_TERMINALS = frozenset({
    "gnome-terminal-server",
    "konsole",
    "xterm",
    "alacritty",
    "kitty",
    "wezterm-gui",
    "terminal",
    "iterm2",
})

# Display label -> matcher over the lower-cased process name.
TERMINAL_GROUPS: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("cmd", lambda n: n == "cmd.exe"),
    ("ps", lambda n: "powershell" in n or n in ("pwsh", "pwsh.exe")),
    ("wt", lambda n: n in ("windowsterminal.exe", "wt.exe")),
    ("term", lambda n: n in _UNIX_TERMINALS),
)


@dataclass(frozen=True)
class ProcessSample:
    pid: int
    name: str
    memory_bytes: int

    @property
    def memory_mb(self) -> int:
        return self.memory_bytes // (1024 * 1024)


def iter_processes() -> Iterator[ProcessSample]:
    """Snapshot running processes, skipping ones that vanish or deny access."""
    for proc in psutil.process_iter(["pid", "name", "memory_info"]):
        info = proc.info
        name = info.get("name")
        if not name:
            continue
        mem = info.get("memory_info")
        yield ProcessSample(
            pid=info.get("pid") or proc.pid,
            name=name,
            memory_bytes=mem.rss if mem is not None else 0,
        )


def find_processes(pattern: str, processes: Iterable[ProcessSample] | None = None) -> list[ProcessSample]:
    """Return processes whose name contains ``pattern`` (case-insensitive)."""
    pattern = pattern.lower()
    source = iter_processes() if processes is None else processes
    return [p for p in source if pattern in p.name.lower()]


def top_processes(limit: int, processes: Iterable[ProcessSample] | None = None) -> list[ProcessSample]:
    """Return the ``limit`` processes using the most resident memory."""
    source = iter_processes() if processes is None else processes
    return sorted(source, key=lambda p: p.memory_bytes, reverse=True)[:limit]


def check_opencode_process(processes: Iterable[ProcessSample] | None = None) -> CheckResult:
    try:
        matches = find_processes(OPENCODE_PATTERN, processes)
    except (psutil.Error, OSError) as e:
        logger.debug("Process enumeration failed", exc_info=True)
        return CheckResult("OPENCODE", CheckStatus.WARNING, f"Could not list processes: {e}")

    if not matches:
        return CheckResult("OPENCODE", CheckStatus.INACTIVE, "Process not detected")

    mem_mb = sum(p.memory_bytes for p in matches) // (1024 * 1024)
    count_str = f" ({len(matches)} instances)" if len(matches) > 1 else ""
    details = f"PID {matches[0].pid} :: {mem_mb}MB{count_str}"

    status = CheckStatus.WARNING if mem_mb > OPENCODE_MEMORY_WARN_MB else CheckStatus.OK
    return CheckResult("OPENCODE", status, details)


def check_terminals(processes: Iterable[ProcessSample] | None = None) -> CheckResult:
    counts = {label: 0 for label, _ in TERMINAL_GROUPS}
    total_mem = 0
    try:
        for proc in iter_processes() if processes is None else processes:
            name = proc.name.lower()
            for label, matches in TERMINAL_GROUPS:
                if matches(name):
                    counts[label] += 1
                    total_mem += proc.memory_bytes
                    break
    except (psutil.Error, OSError) as e:
        logger.debug("Process enumeration failed", exc_info=True)
        return CheckResult("TERMINALS", CheckStatus.WARNING, f"Could not list processes: {e}")

    total = sum(counts.values())
    if total == 0:
        return CheckResult("TERMINALS", CheckStatus.INACTIVE, "No terminals detected")

    parts = " ".join(f"{label}:{n}" for label, n in counts.items() if n)
    details = f"{parts} :: {total_mem // (1024 * 1024)}MB"
    status = CheckStatus.WARNING if total > TERMINAL_COUNT_WARN else CheckStatus.OK
    return CheckResult("TERMINALS", status, details)
