"""Hot code-cache segment placement checker."""

from .checker import PlacementCheckResult, run_placement_check
from .parser import OutputParser, ParsedCodeCache, UnclassifiableAddressError, parse_output
from .segments import SegmentName, SegmentTable
from .verifier import PlacementExpectation, PlacementReport, Violation, verify_placement

__all__ = [
    "OutputParser",
    "ParsedCodeCache",
    "PlacementCheckResult",
    "PlacementExpectation",
    "PlacementReport",
    "SegmentName",
    "SegmentTable",
    "UnclassifiableAddressError",
    "Violation",
    "parse_output",
    "run_placement_check",
    "verify_placement",
]
