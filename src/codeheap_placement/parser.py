"""Parser for Compiler.codecache / Compiler.codelist diagnostic output.

Two line shapes are recognized:

    CodeHeap 'non-profiled nmethods': size=120028Kb used=373Kb max_used=373Kb free=119654Kb
     bounds [0x00007f764cac9000, 0x00007f764cd39000, 0x00007f7654000000]

is a segment announcement: the header names the segment and the line right
after it always carries ``[start, mid, end]``. Unsegmented caches report
``CodeCache: size=...`` / ``ExtraHotCache: size=...`` headers instead.

    12 4 0 java.lang.Object.hashCode()I [0x00007f91e0ac9910, 0x00007f91e0ac9aa0 - 0x00007f91e0ac9c88]

is a compiled-method record: index, compilation tier, a second indicator,
the qualified name with its signature, then the address ranges.
Anything else is chatter and is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Any, Iterable, Iterator

from .segments import SegmentName, SegmentTable

logger = logging.getLogger(__name__)

U64_MAX = (1 << 64) - 1
OPTIMIZING_TIER = 4

_HEAP_HEADER = re.compile(r"^\s*CodeHeap '(?P<label>[^']*)'")
_CACHE_HEADER = re.compile(r"^\s*(?P<label>[^\s:']*Cache): size=")
_BOUNDS = re.compile(
    r"\[\s*0x(?P<start>[0-9a-fA-F]+)\s*,\s*0x(?P<mid>[0-9a-fA-F]+)\s*,\s*0x(?P<end>[0-9a-fA-F]+)\s*\]"
)
_METHOD = re.compile(
    r"^\s*(?P<index>\d+)\s+(?P<tier>\d+)\s+(?P<indicator>\d+)\s+"
    r"(?P<name>[^\s(]+)\((?P<signature>[^)]*)\)\S*\s+"
    r"\[\s*0x(?P<address>[0-9a-fA-F]+)\s*[,\]]"
)


class UnclassifiableAddressError(RuntimeError):
    """Raised when tier-4 methods sit outside every announced segment."""

    def __init__(self, methods: list["UnclassifiedMethod"]) -> None:
        self.methods = list(methods)
        names = ", ".join(f"{item.name}@0x{item.address:x}" for item in self.methods)
        super().__init__(f"nmethod does not belong to any CodeHeap segment: {names}")


@dataclass(frozen=True)
class MethodRecord:
    address: int
    name: str
    tier: int


@dataclass(frozen=True)
class UnclassifiedMethod:
    name: str
    address: int
    tier: int

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "address": f"0x{self.address:016x}", "tier": self.tier}


@dataclass
class ParsedCodeCache:
    table: SegmentTable = field(default_factory=SegmentTable)
    unclassified: list[UnclassifiedMethod] = field(default_factory=list)
    skipped_tiers: int = 0

    def methods_in(self, segment: SegmentName) -> list[str]:
        return self.table.methods_in(segment)

    def require_classified(self) -> "ParsedCodeCache":
        if self.unclassified:
            raise UnclassifiableAddressError(self.unclassified)
        return self


def parse_segment_header(line: str) -> str | None:
    """Return the raw segment label of an announcement header, if any."""
    match = _HEAP_HEADER.match(line) or _CACHE_HEADER.match(line)
    if match is None:
        return None
    return match.group("label")


def parse_bounds(line: str) -> tuple[int, int] | None:
    match = _BOUNDS.search(line)
    if match is None:
        return None
    start = int(match.group("start"), 16)
    end = int(match.group("end"), 16)
    if start > U64_MAX or end > U64_MAX:
        return None
    return start, end


def parse_method_record(line: str) -> MethodRecord | None:
    match = _METHOD.match(line)
    if match is None:
        return None
    address = int(match.group("address"), 16)
    if address > U64_MAX:
        return None
    return MethodRecord(address=address, name=match.group("name"), tier=int(match.group("tier")))


def _iter_lines(lines: Iterable[str] | str) -> Iterator[str]:
    if isinstance(lines, str):
        return iter(lines.splitlines())
    return (line.rstrip("\r\n") for line in lines)


class OutputParser:
    def __init__(self, *, tier: int = OPTIMIZING_TIER) -> None:
        self.tier = tier

    def parse(self, lines: Iterable[str] | str) -> ParsedCodeCache:
        parsed = ParsedCodeCache()
        records: list[MethodRecord] = []
        stream = _iter_lines(lines)
        for line in stream:
            label = parse_segment_header(line)
            if label is not None:
                self._consume_announcement(parsed, label, next(stream, None))
                continue
            record = parse_method_record(line)
            if record is not None:
                records.append(record)
        # Segments are complete only once the whole stream is read.
        for record in records:
            self._classify(parsed, record)
        return parsed

    def _consume_announcement(self, parsed: ParsedCodeCache, label: str, bounds_line: str | None) -> None:
        if bounds_line is None:
            logger.debug("segment header without bounds line: %s", label)
            return
        bounds = parse_bounds(bounds_line)
        if bounds is None:
            logger.debug("unparseable bounds for segment %s: %r", label, bounds_line)
            return
        start, end = bounds
        parsed.table.add_segment(label, start, end)

    def _classify(self, parsed: ParsedCodeCache, record: MethodRecord) -> None:
        if record.tier != self.tier:
            parsed.skipped_tiers += 1
            return
        if parsed.table.add_method(record.address, record.name) is None:
            logger.error(
                "nmethod does not belong to any CodeHeap segment: %s at 0x%x",
                record.name,
                record.address,
            )
            parsed.unclassified.append(
                UnclassifiedMethod(name=record.name, address=record.address, tier=record.tier)
            )


def parse_output(lines: Iterable[str] | str, *, tier: int = OPTIMIZING_TIER) -> ParsedCodeCache:
    return OutputParser(tier=tier).parse(lines)
