"""CSV and DXF serializers for decoded scan records."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable, List, Optional, Sequence

from .geometry import RotarySamplePoint, SamplePoint

SURFACE_LAYER = "SCAN_POINTS"
ROTARY_LAYER = "ROTARY_SCAN"
LABEL_EVERY = 10


def export_filename(kind: str, ext: str, when: Optional[date] = None) -> str:
    when = when or date.today()
    return f"{kind}_scan_{when.isoformat()}.{ext}"


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def surface_csv(points: Iterable[SamplePoint]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Index", "X (in)", "Y (in)", "Z (in)"])
    for p in points:
        writer.writerow([p.index, p.x, p.y, p.z])
    return buf.getvalue()


def rotary_csv(points: Iterable[RotarySamplePoint]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Index", "X (in)", "Y (in)", "Z (in)", "A (deg)", "B (deg)"])
    for p in points:
        writer.writerow([p.index, p.x, p.y, p.z, p.a, p.b])
    return buf.getvalue()


# ---------------------------------------------------------------------------
# DXF (AutoCAD R12, group code / value pairs one per line)
# ---------------------------------------------------------------------------


def _pairs(*items) -> List[str]:
    out: List[str] = []
    for code, value in items:
        out.append(str(code))
        out.append(str(value))
    return out


def _header(layer: str, color: int) -> List[str]:
    return _pairs(
        (0, "SECTION"), (2, "HEADER"), (9, "$ACADVER"), (1, "AC1009"), (0, "ENDSEC"),
        (0, "SECTION"), (2, "TABLES"), (0, "TABLE"), (2, "LAYER"), (70, 1),
        (0, "LAYER"), (2, layer), (70, 0), (62, color), (6, "CONTINUOUS"),
        (0, "ENDTAB"), (0, "ENDSEC"),
        (0, "SECTION"), (2, "ENTITIES"),
    )


def _xyz(x: float, y: float, z: float) -> List[str]:
    return _pairs((10, f"{x:.6f}"), (20, f"{y:.6f}"), (30, f"{z:.6f}"))


def _footer() -> List[str]:
    return _pairs((0, "ENDSEC"), (0, "EOF"))


def surface_dxf(points: Sequence[SamplePoint]) -> str:
    """POINT per sample plus one 3D polyline through them in scan order."""

    lines = _header(SURFACE_LAYER, 7)
    for p in points:
        lines += _pairs((0, "POINT"), (8, SURFACE_LAYER)) + _xyz(p.x, p.y, p.z or 0.0)
    lines += _pairs((0, "POLYLINE"), (8, SURFACE_LAYER), (66, 1))
    lines += _pairs((10, "0.0"), (20, "0.0"), (30, "0.0"), (70, 8))
    for p in points:
        lines += _pairs((0, "VERTEX"), (8, SURFACE_LAYER)) + _xyz(p.x, p.y, p.z or 0.0) + _pairs((70, 32))
    lines += _pairs((0, "SEQEND"), (8, SURFACE_LAYER))
    lines += _footer()
    return "\n".join(lines) + "\n"


def rotary_dxf(points: Sequence[RotarySamplePoint]) -> str:
    """POINT per sample, with an A/B text label on every tenth one."""

    lines = _header(ROTARY_LAYER, 3)
    for n, p in enumerate(points):
        z = p.z or 0.0
        lines += _pairs((0, "POINT"), (8, ROTARY_LAYER)) + _xyz(p.x, p.y, z)
        if n % LABEL_EVERY == 0:
            lines += _pairs((0, "TEXT"), (8, ROTARY_LAYER)) + _xyz(p.x, p.y, z + 0.1)
            lines += _pairs((40, "0.1"), (1, f"A:{p.a:.1f} B:{p.b:.1f}"))
    lines += _footer()
    return "\n".join(lines) + "\n"


__all__ = [
    "export_filename",
    "rotary_csv",
    "rotary_dxf",
    "surface_csv",
    "surface_dxf",
]
