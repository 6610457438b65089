from __future__ import annotations

from codeheap_placement.parser import parse_output
from codeheap_placement.segments import SegmentName
from codeheap_placement.verifier import PlacementExpectation, verify_placement

HOT_HEADER = "CodeHeap 'extra-hot': size=4Kb used=1Kb max_used=1Kb free=3Kb"
NON_PROFILED_HEADER = "CodeHeap 'non-profiled nmethods': size=4Kb used=1Kb max_used=1Kb free=3Kb"
PROFILED_HEADER = "CodeHeap 'profiled nmethods': size=4Kb used=1Kb max_used=1Kb free=3Kb"

SEGMENTS = [
    HOT_HEADER,
    " bounds [0x1000, 0x1500, 0x2000]",
    NON_PROFILED_HEADER,
    " bounds [0x3000, 0x3500, 0x4000]",
    PROFILED_HEADER,
    " bounds [0x5000, 0x5500, 0x6000]",
]


def _method(index: int, name: str, address: int, tier: int = 4) -> str:
    return f"{index} {tier} 0 {name}()I [0x{address:x}, 0x{address + 0x10:x} - 0x{address + 0x20:x}]"


def test_hot_java_method_passes() -> None:
    parsed = parse_output(
        [
            HOT_HEADER,
            " bounds [0x1000, 0x1500, 0x2000]",
            NON_PROFILED_HEADER,
            " bounds [0x3000, 0x3500, 0x4000]",
            "12 4 0 java.lang.Object.hashCode()I [0x1200, 0x1300 - 0x1400]",
        ]
    )
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java"))
    assert parsed.methods_in(SegmentName.HOT) == ["java.lang.Object.hashCode"]
    assert report.violations == []
    assert report.status == "PASS"
    assert report.ok() is True


def test_java_method_outside_hot_segment_is_a_violation() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "java.lang.String.length", 0x3200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java"))
    assert parsed.methods_in(SegmentName.TIER_A) == ["java.lang.String.length"]
    misplaced = [item for item in report.violations if item.method_name == "java.lang.String.length"]
    assert len(misplaced) == 1
    assert misplaced[0].expected_segment == "hot"
    assert misplaced[0].actual_segment == "non-profiled"
    assert report.status == "FAIL"


def test_empty_hot_segment_yields_single_violation() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "java.lang.String.length", 0x3200, tier=3)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java"))
    assert [item.reason for item in report.violations] == ["hot segment is empty"]
    assert report.violations[0].method_name is None


def test_capacity_constrained_permits_spill_into_profiled() -> None:
    parsed = parse_output(
        SEGMENTS
        + [
            _method(1, "java.lang.Object.hashCode", 0x1200),
            _method(2, "java.lang.String.length", 0x5200),
        ]
    )
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java", capacity_constrained=True))
    assert parsed.methods_in(SegmentName.TIER_B) == ["java.lang.String.length"]
    assert report.violations == []


def test_spill_is_not_permitted_without_capacity_constraint() -> None:
    parsed = parse_output(
        SEGMENTS
        + [
            _method(1, "java.lang.Object.hashCode", 0x1200),
            _method(2, "java.lang.String.length", 0x5200),
        ]
    )
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java"))
    assert [item.reason for item in report.violations] == ["profiled segment contains expected-hot method"]


def test_capacity_constrained_requires_spillover() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "java.lang.Object.hashCode", 0x1200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java", capacity_constrained=True))
    assert [item.reason for item in report.violations] == ["remaining methods must spill into profiled segment"]


def test_capacity_constrained_still_rejects_non_spill_segment() -> None:
    parsed = parse_output(
        SEGMENTS
        + [
            _method(1, "java.lang.Object.hashCode", 0x1200),
            _method(2, "java.lang.String.length", 0x5200),
            _method(3, "java.lang.Integer.valueOf", 0x3200),
        ]
    )
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java", capacity_constrained=True))
    assert [(item.method_name, item.actual_segment) for item in report.violations] == [
        ("java.lang.Integer.valueOf", "non-profiled"),
    ]


def test_all_violations_are_collected() -> None:
    parsed = parse_output(
        SEGMENTS
        + [
            _method(1, "sun.nio.Foo.bar", 0x1200),
            _method(2, "jdk.internal.Baz.qux", 0x1300),
            _method(3, "java.lang.String.length", 0x3200),
            _method(4, "java.lang.Integer.valueOf", 0x5200),
        ]
    )
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java"))
    assert [item.method_name for item in report.violations] == [
        "sun.nio.Foo.bar",
        "jdk.internal.Baz.qux",
        "java.lang.String.length",
        "java.lang.Integer.valueOf",
    ]
    assert report.violations[0].reason == "hot segment contains wrong method"


def test_empty_occupancy_reports_every_hot_method() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "java.lang.Object.hashCode", 0x1200), _method(2, "a.B.c", 0x3200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix(None, hot_occupancy="empty"))
    assert [(item.method_name, item.reason) for item in report.violations] == [
        ("java.lang.Object.hashCode", "hot segment must be empty"),
    ]


def test_empty_occupancy_passes_with_no_hot_methods() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "java.lang.Object.hashCode", 0x3200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix(None, hot_occupancy="empty"))
    assert report.ok() is True


def test_unclassified_methods_take_precedence_in_status() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "java.lang.Object.hashCode", 0x1200), _method(2, "x.Y.z", 0x9000)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java"))
    assert report.violations == []
    assert report.status == "ERROR"
    payload = report.as_dict()
    assert payload["unclassified"] == [{"name": "x.Y.z", "address": "0x0000000000009000", "tier": 4}]
    assert payload["methods"]["hot"] == ["java.lang.Object.hashCode"]


def test_any_occupancy_allows_empty_hot_segment() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "jdk.internal.Baz.qux", 0x3200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java", hot_occupancy="any"))
    assert report.violations == []
    assert report.ok() is True


def test_any_occupancy_still_checks_hot_contents() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "sun.nio.Foo.bar", 0x1200), _method(2, "java.lang.Math.max", 0x3200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java", hot_occupancy="any"))
    assert [(item.method_name, item.reason) for item in report.violations] == [
        ("sun.nio.Foo.bar", "hot segment contains wrong method"),
        ("java.lang.Math.max", "non-profiled segment contains expected-hot method"),
    ]


def test_violation_segments_are_labels_or_none() -> None:
    parsed = parse_output(SEGMENTS + [_method(1, "sun.nio.Foo.bar", 0x1200), _method(2, "java.lang.Math.max", 0x5200)])
    report = verify_placement(parsed, PlacementExpectation.for_prefix("java", capacity_constrained=False))
    wrong = report.violations[0]
    assert (wrong.expected_segment, wrong.actual_segment) == ("non-profiled", "hot")
    allowed = {"hot", "non-profiled", "profiled", "non-nmethods", "none"}
    for item in report.violations:
        assert item.expected_segment in allowed
        assert item.actual_segment in allowed
