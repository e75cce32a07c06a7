"""JSON report output."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pixelverify.models.run_result import RunResult

logger = logging.getLogger(__name__)


def generate_json_report(run_result: RunResult, output_dir: Path) -> Path:
    """Write a machine-readable JSON report and return its path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"report_{run_result.run_id}.json"

    report = run_result.model_dump(mode="json")
    report["failures"] = [
        {
            "label": v.identity.label,
            "error": v.error.value if v.error else None,
            "message": v.message,
            "diff_artifact": v.diff_artifact,
            "rendered_artifact": v.rendered_artifact,
        }
        for v in run_result.verdicts
        if not v.passed
    ]

    with open(path, "w") as f:
        json.dump(report, f, indent=2, default=str)
    logger.info("JSON report: %s", path)
    return path
