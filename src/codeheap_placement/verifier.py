"""Hot-segment placement invariant checks over a parsed code cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal

from .parser import ParsedCodeCache, UnclassifiedMethod
from .segments import SEGMENT_LABELS, SegmentName

HotOccupancy = Literal["non_empty", "empty", "any"]

STATUS_PASS = "PASS"
STATUS_FAIL = "FAIL"
STATUS_ERROR = "ERROR"


@dataclass(frozen=True)
class PlacementExpectation:
    is_expected_hot: Callable[[str], bool]
    hot_occupancy: HotOccupancy = "non_empty"
    capacity_constrained: bool = False
    spill_segment: SegmentName = SegmentName.TIER_B

    @classmethod
    def for_prefix(cls, prefix: str | None, **kwargs: Any) -> "PlacementExpectation":
        if not prefix:
            return cls(is_expected_hot=lambda name: False, **kwargs)
        return cls(is_expected_hot=lambda name: name.startswith(prefix), **kwargs)


@dataclass(frozen=True)
class Violation:
    method_name: str | None
    expected_segment: str
    actual_segment: str
    reason: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "method_name": self.method_name,
            "expected_segment": self.expected_segment,
            "actual_segment": self.actual_segment,
            "reason": self.reason,
        }


@dataclass
class PlacementReport:
    segments: dict[str, dict[str, str]] = field(default_factory=dict)
    methods: dict[str, list[str]] = field(default_factory=dict)
    violations: list[Violation] = field(default_factory=list)
    unclassified: list[UnclassifiedMethod] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.unclassified:
            return STATUS_ERROR
        if self.violations:
            return STATUS_FAIL
        return STATUS_PASS

    def ok(self) -> bool:
        return self.status == STATUS_PASS

    def add_violation(
        self,
        reason: str,
        *,
        method_name: str | None = None,
        expected: SegmentName | str,
        actual: SegmentName | str,
    ) -> None:
        self.violations.append(
            Violation(
                method_name=method_name,
                expected_segment=_label(expected),
                actual_segment=_label(actual),
                reason=reason,
            )
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "segments": self.segments,
            "methods": self.methods,
            "violations": [item.as_dict() for item in self.violations],
            "unclassified": [item.as_dict() for item in self.unclassified],
        }


def _label(value: SegmentName | str) -> str:
    if isinstance(value, SegmentName):
        return SEGMENT_LABELS[value]
    return value


def verify_placement(parsed: ParsedCodeCache, expectation: PlacementExpectation) -> PlacementReport:
    """Check where tier-4 methods landed; every violation is collected."""
    report = PlacementReport(
        segments=parsed.table.bounds(),
        methods=parsed.table.method_lists(),
        unclassified=list(parsed.unclassified),
    )
    expected_hot = expectation.is_expected_hot
    hot_methods = parsed.methods_in(SegmentName.HOT)

    if expectation.hot_occupancy == "non_empty" and not hot_methods:
        report.add_violation("hot segment is empty", expected=SegmentName.HOT, actual="none")
    if expectation.hot_occupancy == "empty":
        for name in hot_methods:
            report.add_violation(
                "hot segment must be empty",
                method_name=name,
                expected="none",
                actual=SegmentName.HOT,
            )
    else:
        for name in hot_methods:
            if not expected_hot(name):
                report.add_violation(
                    "hot segment contains wrong method",
                    method_name=name,
                    expected=SegmentName.TIER_A,
                    actual=SegmentName.HOT,
                )

    spilled = 0
    for segment in (SegmentName.TIER_A, SegmentName.TIER_B):
        for name in parsed.methods_in(segment):
            if not expected_hot(name):
                continue
            if expectation.capacity_constrained and segment == expectation.spill_segment:
                spilled += 1
                continue
            report.add_violation(
                f"{SEGMENT_LABELS[segment]} segment contains expected-hot method",
                method_name=name,
                expected=SegmentName.HOT,
                actual=segment,
            )

    if expectation.capacity_constrained and not spilled:
        spill_label = SEGMENT_LABELS[expectation.spill_segment]
        report.add_violation(
            f"remaining methods must spill into {spill_label} segment",
            expected=expectation.spill_segment,
            actual="none",
        )
    return report
