"""Scenario catalogue loader for placement checks."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .segments import SegmentName
from .verifier import PlacementExpectation

_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

DEFAULT_SCENARIOS_PATH = Path("config/scenarios.yaml")


class ScenarioNotFoundError(KeyError):
    pass


class PlacementScenario(BaseModel):
    scenario_id: str = Field(..., min_length=1)
    description: str = ""
    runtime_options: list[str] = []
    expected_hot_prefix: str | None = "java"
    hot_occupancy: Literal["non_empty", "empty", "any"] = "non_empty"
    capacity_constrained: bool = False
    spill_segment: SegmentName = SegmentName.TIER_B

    model_config = ConfigDict(extra="forbid")

    @field_validator("spill_segment")
    @classmethod
    def _spill_target(cls, value: SegmentName) -> SegmentName:
        if value not in (SegmentName.TIER_A, SegmentName.TIER_B):
            raise ValueError("spill_segment must be tier_a or tier_b")
        return value

    @model_validator(mode="after")
    def _check_capacity(self) -> "PlacementScenario":
        if self.capacity_constrained and self.hot_occupancy == "empty":
            raise ValueError("capacity_constrained scenarios cannot expect an empty hot segment")
        return self

    def expectation(self) -> PlacementExpectation:
        return PlacementExpectation.for_prefix(
            self.expected_hot_prefix,
            hot_occupancy=self.hot_occupancy,
            capacity_constrained=self.capacity_constrained,
            spill_segment=self.spill_segment,
        )


class ScenarioCatalogue(BaseModel):
    scenarios: list[PlacementScenario]

    @model_validator(mode="after")
    def _unique_ids(self) -> "ScenarioCatalogue":
        ids = [item.scenario_id for item in self.scenarios]
        if len(ids) != len(set(ids)):
            raise ValueError("scenario_id values must be unique")
        return self

    def get(self, scenario_id: str) -> PlacementScenario:
        for scenario in self.scenarios:
            if scenario.scenario_id == scenario_id:
                return scenario
        raise ScenarioNotFoundError(scenario_id)

    def ids(self) -> list[str]:
        return [item.scenario_id for item in self.scenarios]


def _expand_str(value: str) -> str:
    def replacer(match: re.Match[str]) -> str:
        token = match.group(1)
        if ":-" in token:
            key, default = token.split(":-", 1)
            actual = os.getenv(key, "")
            return actual if actual.strip() else default
        actual = os.getenv(token, "")
        if not actual.strip():
            raise ValueError(f"missing environment variable: {token}")
        return actual

    return _VAR_PATTERN.sub(replacer, value)


def _expand_payload(value: Any) -> Any:
    if isinstance(value, str):
        return _expand_str(value)
    if isinstance(value, list):
        return [_expand_payload(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _expand_payload(item) for key, item in value.items()}
    return value


def load_scenarios(path: Path = DEFAULT_SCENARIOS_PATH) -> ScenarioCatalogue:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    expanded = _expand_payload(data)
    return ScenarioCatalogue(**expanded)
