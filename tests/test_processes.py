from __future__ import annotations

from types import SimpleNamespace

import psutil

from opencode_diag.core import processes
from opencode_diag.core.processes import (
    ProcessSample,
    check_opencode_process,
    check_terminals,
    find_processes,
    iter_processes,
    top_processes,
)
from opencode_diag.models import CheckStatus

MB = 1024 * 1024


def _proc(pid: int, name: str, mb: int) -> ProcessSample:
    return ProcessSample(pid=pid, name=name, memory_bytes=mb * MB)


def test_opencode_not_running_is_inactive() -> None:
    result = check_opencode_process([_proc(1, "python", 50)])
    assert result.name == "OPENCODE"
    assert result.status is CheckStatus.INACTIVE
    assert result.details == "Process not detected"


def test_opencode_single_instance() -> None:
    result = check_opencode_process([_proc(4242, "OpenCode.exe", 300), _proc(7, "bash", 5)])
    assert result.status is CheckStatus.OK
    assert result.details == "PID 4242 :: 300MB"


def test_opencode_many_instances_over_memory_limit_warns() -> None:
    procs = [_proc(10, "opencode", 1500), _proc(11, "opencode-helper", 600)]

    result = check_opencode_process(procs)

    assert result.status is CheckStatus.WARNING
    assert result.details == "PID 10 :: 2100MB (2 instances)"


def test_terminals_none_found() -> None:
    result = check_terminals([_proc(1, "python", 10)])
    assert result.status is CheckStatus.INACTIVE
    assert result.details == "No terminals detected"


def test_terminals_counted_by_group() -> None:
    procs = [
        _proc(1, "cmd.exe", 5),
        _proc(2, "powershell.exe", 60),
        _proc(3, "pwsh.exe", 40),
        _proc(4, "WindowsTerminal.exe", 100),
        _proc(5, "notepad.exe", 20),
    ]

    result = check_terminals(procs)

    assert result.status is CheckStatus.OK
    assert result.details == "cmd:1 ps:2 wt:1 :: 205MB"


def test_many_terminals_warn() -> None:
    procs = [_proc(i, "cmd.exe", 1) for i in range(11)]
    result = check_terminals(procs)
    assert result.status is CheckStatus.WARNING
    assert result.details == "cmd:11 :: 11MB"


def test_unix_terminal_emulators_counted() -> None:
    result = check_terminals([_proc(1, "kitty", 80), _proc(2, "gnome-terminal-server", 40)])
    assert result.details == "term:2 :: 120MB"


def test_find_and_top_processes() -> None:
    procs = [_proc(1, "OpenCode", 10), _proc(2, "chrome", 900), _proc(3, "node", 300)]

    assert [p.pid for p in find_processes("opencode", procs)] == [1]
    assert [p.pid for p in top_processes(2, procs)] == [2, 3]


def test_iter_processes_skips_unnamed_and_missing_memory(monkeypatch) -> None:
    fake = [
        SimpleNamespace(pid=1, info={"pid": 1, "name": "opencode", "memory_info": SimpleNamespace(rss=5 * MB)}),
        SimpleNamespace(pid=2, info={"pid": 2, "name": None, "memory_info": None}),
        SimpleNamespace(pid=3, info={"pid": 3, "name": "secured", "memory_info": None}),
    ]
    monkeypatch.setattr(processes.psutil, "process_iter", lambda attrs: iter(fake))

    samples = list(iter_processes())

    assert samples == [_proc(1, "opencode", 5), ProcessSample(3, "secured", 0)]


def test_enumeration_failure_degrades_to_warning(monkeypatch) -> None:
    def broken(attrs):
        raise psutil.AccessDenied()

    monkeypatch.setattr(processes.psutil, "process_iter", broken)

    assert check_opencode_process().status is CheckStatus.WARNING
    assert check_terminals().status is CheckStatus.WARNING
