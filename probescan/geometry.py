"""Point records and scan sessions.

Sample points are created by the planner with their index and lateral target,
and created again by the decoder from what the controller actually measured.
A :class:`ScanSession` owns one scan's records; the controller keeps one per
scan kind and replaces its points wholesale on every successful retrieval.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from statistics import mean
from typing import Any, Dict, List, Optional, Sequence, Union

SURFACE = "surface"
ROTARY = "rotary"
ZPROBE = "zprobe"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class SamplePoint:
    """One surface sample. ``z`` is only known after decoding."""

    index: int
    x: float
    y: float
    z: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "x": self.x, "y": self.y, "z": self.z}


@dataclass
class RotarySamplePoint:
    """One rotary sample.

    Both rotary registers are always carried. Only one axis is driven by the
    scan; the other holds whatever the controller reported for it.
    """

    index: int
    x: float
    y: float
    z: Optional[float] = None
    a: float = 0.0
    b: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "a": self.a,
            "b": self.b,
        }


Point = Union[SamplePoint, RotarySamplePoint]


@dataclass
class ZProbeReading:
    """Result of the single point Z touch-off job."""

    probe_z: float
    complete: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"probe_z": self.probe_z, "complete": self.complete}


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@dataclass
class ScanSession:
    """Ordered records of one scan plus its start and end timestamps."""

    kind: str = SURFACE
    points: List[Point] = field(default_factory=list)
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    def begin(self, now: Optional[float] = None) -> "ScanSession":
        self.points = []
        self.start_time = time.time() if now is None else now
        self.end_time = None
        return self

    def finish(self, points: Sequence[Point], now: Optional[float] = None) -> "ScanSession":
        self.points = list(points)
        self.end_time = time.time() if now is None else now
        return self

    @property
    def duration_s(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def summary(self) -> Dict[str, Any]:
        zs = [p.z for p in self.points if p.z is not None]
        if not zs:
            return {"count": len(self.points), "duration_s": self.duration_s}
        lo, hi = min(zs), max(zs)
        return {
            "count": len(self.points),
            "duration_s": self.duration_s,
            "min_z": lo,
            "max_z": hi,
            "avg_z": mean(zs),
            "range_z": hi - lo,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "points": [p.to_dict() for p in self.points],
        }


__all__ = [
    "Point",
    "ROTARY",
    "RotarySamplePoint",
    "SURFACE",
    "SamplePoint",
    "ScanSession",
    "ZPROBE",
    "ZProbeReading",
]
