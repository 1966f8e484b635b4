"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from smokeqa.models.report import RunReport


def generate_json_report(report: RunReport, output_path: Path) -> None:
    """Write the machine-readable run report."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report.to_json_dict(), f, indent=2, ensure_ascii=False)


def load_json_report(path: Path) -> RunReport:
    with open(path, encoding="utf-8") as f:
        return RunReport.model_validate(json.load(f))
