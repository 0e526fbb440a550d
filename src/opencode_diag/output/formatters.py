"""Table / text / JSON / YAML output dispatch."""

from __future__ import annotations

import json
from typing import Any

import yaml
from rich.console import Console

from opencode_diag.models import CheckResult
from opencode_diag.models.report import DiagnosticReport

console = Console()


def _check_to_dict(check: CheckResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": check.name,
        "status": check.status.value,
        "details": check.details,
    }
    if check.message is not None:
        data["message"] = check.message
    return data


def report_to_dict(report: DiagnosticReport) -> dict[str, Any]:
    return {
        "timestamp": report.timestamp,
        "checks": [_check_to_dict(c) for c in report.checks()],
        "diagnosis": report.diagnosis,
    }


def output_report(report: DiagnosticReport, fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps(report_to_dict(report), indent=2))
    elif fmt == "yaml":
        dumped = yaml.dump(report_to_dict(report), default_flow_style=False, sort_keys=False)
        console.print(dumped, markup=False)
    elif fmt == "text":
        # Rich would parse the "[OK]" badges as markup
        print(report.to_text_report(), end="")
    else:
        from opencode_diag.output.tables import diagnosis_panel, report_table
        console.print(report_table(report))
        console.print(diagnosis_panel(report))
