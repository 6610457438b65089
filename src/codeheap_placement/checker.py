"""Placement check over captured Compiler.codecache / Compiler.codelist output."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .config import PlacementScenario
from .parser import OutputParser
from .verifier import PlacementReport, verify_placement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementCheckResult:
    status: str
    artifact_path: str | None
    payload: dict[str, Any]
    report: PlacementReport


def run_placement_check(
    lines: Iterable[str] | str,
    scenario: PlacementScenario,
    *,
    output_path: str | None = None,
    parser: OutputParser | None = None,
) -> PlacementCheckResult:
    parsed = (parser or OutputParser()).parse(lines)
    report = verify_placement(parsed, scenario.expectation())
    payload: dict[str, Any] = {
        "generated_at_utc": _utc_now(),
        "scenario_id": scenario.scenario_id,
        "runtime_options": list(scenario.runtime_options),
        "skipped_lower_tier_methods": parsed.skipped_tiers,
        **report.as_dict(),
    }
    for violation in report.violations:
        logger.warning(
            "placement violation scenario=%s method=%s reason=%s",
            scenario.scenario_id,
            violation.method_name,
            violation.reason,
        )
    for method in report.unclassified:
        logger.warning(
            "unclassified method scenario=%s method=%s address=0x%x",
            scenario.scenario_id,
            method.name,
            method.address,
        )
    logger.info(
        "placement check scenario=%s status=%s violations=%d unclassified=%d",
        scenario.scenario_id,
        report.status,
        len(report.violations),
        len(report.unclassified),
    )

    artifact_path: str | None = None
    if output_path:
        artifact = Path(output_path)
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_text(json.dumps(payload, sort_keys=True, ensure_ascii=True, indent=2) + "\n", encoding="utf-8")
        artifact_path = str(artifact)
    return PlacementCheckResult(status=report.status, artifact_path=artifact_path, payload=payload, report=report)


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()
