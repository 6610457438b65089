"""CLI entrypoint for hot-segment placement checks."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from .checker import run_placement_check
from .config import DEFAULT_SCENARIOS_PATH, ScenarioNotFoundError, load_scenarios
from .logging_utils import configure_logging


def _read_inputs(paths: list[str]) -> list[str]:
    lines: list[str] = []
    for raw in paths:
        if raw == "-":
            lines.extend(sys.stdin.read().splitlines())
        else:
            lines.extend(Path(raw).read_text(encoding="utf-8").splitlines())
    return lines


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Hot code-cache segment placement checker")
    parser.add_argument("--scenarios", default=str(DEFAULT_SCENARIOS_PATH), help="Path to scenario catalogue YAML")
    parser.add_argument("--scenario", required=True, help="Scenario id from the catalogue")
    parser.add_argument(
        "--input",
        action="append",
        required=True,
        help="Captured Compiler.codecache/Compiler.codelist output ('-' for stdin); repeatable",
    )
    parser.add_argument("--output-path", default=None, help="Write the JSON report here")
    parser.add_argument("--log-path", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    configure_logging(level=getattr(logging, args.log_level), log_path=args.log_path)
    catalogue = load_scenarios(Path(args.scenarios))
    try:
        scenario = catalogue.get(args.scenario)
    except ScenarioNotFoundError:
        parser.error(f"unknown scenario {args.scenario!r}; known: {', '.join(catalogue.ids())}")
    result = run_placement_check(_read_inputs(args.input), scenario, output_path=args.output_path)
    print(
        json.dumps(
            {
                "status": result.status,
                "artifact_path": result.artifact_path,
                "payload": result.payload,
            },
            sort_keys=True,
        )
    )
    raise SystemExit(0 if result.report.ok() else 1)


if __name__ == "__main__":
    main()
