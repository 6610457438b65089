"""Code-cache segment table: named address ranges and method lists."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class SegmentName(str, Enum):
    HOT = "hot"
    TIER_A = "tier_a"
    TIER_B = "tier_b"
    NON_METHOD = "non_method"
    UNKNOWN = "unknown"


SEGMENT_LABELS: dict[SegmentName, str] = {
    SegmentName.HOT: "hot",
    SegmentName.TIER_A: "non-profiled",
    SegmentName.TIER_B: "profiled",
    SegmentName.NON_METHOD: "non-nmethods",
    SegmentName.UNKNOWN: "UNKNOWN",
}

# Labels reported by Compiler.codecache, segmented and unsegmented modes.
SEGMENT_ALIASES: dict[str, SegmentName] = {
    "extra-hot": SegmentName.HOT,
    "non-profiled nmethods": SegmentName.TIER_A,
    "profiled nmethods": SegmentName.TIER_B,
    "non-nmethods": SegmentName.NON_METHOD,
    "CodeCache": SegmentName.TIER_A,
    "ExtraHotCache": SegmentName.HOT,
}

CLASSIFY_ORDER: tuple[SegmentName, ...] = (
    SegmentName.HOT,
    SegmentName.TIER_A,
    SegmentName.TIER_B,
    SegmentName.NON_METHOD,
)


@dataclass(frozen=True)
class Segment:
    name: SegmentName
    start: int
    end: int

    def contains(self, address: int) -> bool:
        return self.start <= address <= self.end

    def as_dict(self) -> dict[str, str]:
        return {"start": f"0x{self.start:016x}", "end": f"0x{self.end:016x}"}


@dataclass
class SegmentTable:
    segments: dict[SegmentName, Segment] = field(default_factory=dict)
    methods: dict[SegmentName, list[str]] = field(
        default_factory=lambda: {name: [] for name in CLASSIFY_ORDER}
    )

    def add_segment(self, raw_name: str, start: int, end: int) -> SegmentName | None:
        canonical = SEGMENT_ALIASES.get(raw_name.strip())
        if canonical is None:
            logger.warning("unexpected segment: >%s<", raw_name)
            return None
        previous = self.segments.get(canonical)
        if previous is not None and (previous.start, previous.end) != (start, end):
            logger.warning(
                "segment %s re-announced: [0x%x, 0x%x] replaces [0x%x, 0x%x]",
                canonical.value,
                start,
                end,
                previous.start,
                previous.end,
            )
        self.segments[canonical] = Segment(name=canonical, start=start, end=end)
        return canonical

    def classify(self, address: int) -> SegmentName | None:
        for name in CLASSIFY_ORDER:
            segment = self.segments.get(name)
            if segment is not None and segment.contains(address):
                return name
        return None

    def segment_name_for(self, address: int) -> str:
        return SEGMENT_LABELS[self.classify(address) or SegmentName.UNKNOWN]

    def add_method(self, address: int, name: str) -> SegmentName | None:
        segment = self.classify(address)
        if segment is not None:
            self.methods[segment].append(name)
        return segment

    def methods_in(self, segment: SegmentName) -> list[str]:
        return list(self.methods.get(segment, []))

    def bounds(self) -> dict[str, dict[str, str]]:
        return {name.value: self.segments[name].as_dict() for name in CLASSIFY_ORDER if name in self.segments}

    def method_lists(self) -> dict[str, list[str]]:
        return {name.value: list(items) for name, items in self.methods.items()}
