"""Program text generation for the probing jobs.

Each job renders to one OpenSBP program that the FabMo engine runs on its own.
Results come back through the engine's variable store: the program fills a
JSON accumulator (see :mod:`probescan.encoding`) and raises ``&COMPLETE`` only
after the accumulator is closed and the metadata is written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import MAX_POINTS, ProbeConfig, RotaryScanParameters, ScanParameters
from .dialect import OpenSBP
from .encoding import InlineJsonEncoder
from .geometry import ROTARY, SURFACE, ZPROBE, Point, RotarySamplePoint
from .toolpath import plan_rotary, plan_surface
from .zeroing import RETRACT, SAFE_Z, offset_from_reference, reference_variable, zero_routine

logger = logging.getLogger(__name__)

COMPLETE_FLAG = "COMPLETE"
TOTAL_POINTS = "TOTALPOINTS"

DATA_VARIABLES = {SURFACE: "SCANDATA", ROTARY: "ROTARYDATA", ZPROBE: "PROBEDATA"}
# Per-kind flags tell apart which job raised the shared &COMPLETE.
DONE_FLAGS = {SURFACE: "SCANCOMPLETE", ROTARY: "ROTARYCOMPLETE", ZPROBE: "PROBECOMPLETE"}


@dataclass
class EmitOptions:
    point_comments: bool = True
    header_comments: bool = True


@dataclass
class Program:
    """Rendered program text plus what the caller needs to report on it."""

    kind: str
    lines: List[str] = field(default_factory=list)
    total_points: int = 0

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)


class ProgramEmitter:
    """Render probing programs for a given probe configuration."""

    def __init__(
        self,
        config: ProbeConfig,
        *,
        dialect: Optional[OpenSBP] = None,
        options: Optional[EmitOptions] = None,
        max_points: int = MAX_POINTS,
    ) -> None:
        config.validate()
        self.config = config
        self.max_points = max_points
        self.d = dialect or OpenSBP()
        self.options = options or EmitOptions()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def surface_program(self, params: ScanParameters) -> Program:
        plan = plan_surface(params, max_points=self.max_points)
        header = [
            "=== Surface Scan with JSON Storage ===",
            f"Grid: {params.x_count}x{params.y_count} = {len(plan)} points",
        ]
        return self._scan_program(SURFACE, plan, header, origin=(params.start_x, params.start_y))

    def rotary_program(self, params: RotaryScanParameters) -> Program:
        plan = plan_rotary(params, max_points=self.max_points)
        header = [
            "=== 4D Rotary Scan with JSON Storage ===",
            f"Rotary Axis: {params.rotary_axis}",
            f"Angles: {params.num_angles}, Linear points: {params.linear_count}",
            f"Total points: {len(plan)}",
            f"Manual rotation: {'YES' if params.manual_rotary else 'NO'}",
        ]
        origin = (params.start, 0.0) if params.axis == "X" else (0.0, params.start)
        return self._scan_program(ROTARY, plan, header, origin=origin, rotary=params)

    def z_probe_program(self) -> Program:
        """Single touch-off: probe Z once, store it, zero Z there, rise to safe Z."""

        d, cfg = self.d, self.config
        enc = InlineJsonEncoder(DATA_VARIABLES[ZPROBE], d)
        lines = [
            d.comment("=== Z-Axis Probing with JSON Storage ==="),
            "",
            d.assign(COMPLETE_FLAG, 0),
            d.assign(DONE_FLAGS[ZPROBE], 0),
            *enc.object_start(),
            "",
            d.prompt("Position the probe over the flat area to zero to, then press X"),
            d.set_speed(cfg.probe_speed),
            d.probe_z(cfg.max_probe_depth, cfg.probe_speed, cfg.input_number),
            *enc.append_fields([("probeZ", d.register("Z")), ("complete", 1)]),
            *enc.object_end(),
            "",
            d.zero_z(),
            d.move_z(cfg.safe_z),
            "",
            d.assign(DONE_FLAGS[ZPROBE], 1),
            d.assign(COMPLETE_FLAG, 1),
            d.pause(d.string("Complete")),
            "",
        ]
        return self._finish(Program(kind=ZPROBE, lines=lines, total_points=1))

    # ------------------------------------------------------------------
    # Program sections
    # ------------------------------------------------------------------
    def _scan_program(
        self,
        kind: str,
        plan: Sequence[Point],
        header: Sequence[str],
        *,
        origin: Tuple[float, float],
        rotary: Optional[RotaryScanParameters] = None,
    ) -> Program:
        d = self.d
        reference = reference_variable(kind)
        enc = InlineJsonEncoder(DATA_VARIABLES[kind], d)
        lines: List[str] = []
        if self.options.header_comments:
            lines.extend(d.comment(h) for h in header)
            lines.append(d.comment("Quotes are written as &quot; and restored on retrieval"))
            lines.append("")

        lines.append(d.assign(COMPLETE_FLAG, 0))
        lines.append(d.assign(DONE_FLAGS[kind], 0))
        lines.append("")
        lines.append(d.comment("=== STEP 1: Z-AXIS ZEROING ==="))
        lines.extend(zero_routine(kind, self.config, d))

        lines.append(d.comment("=== STEP 2: SCANNING ==="))
        lines.extend(enc.array_start())
        lines.append(d.assign(SAFE_Z, offset_from_reference(d, self.config.safe_z, reference)))
        lines.append(d.move_z(d.var(SAFE_Z)))
        lines.append(d.set_speed(self.config.probe_speed))
        lines.append("")

        current_angle: Optional[float] = None
        for point in plan:
            if rotary is not None:
                angle = point.a if rotary.rotary_axis == "A" else point.b
                if angle != current_angle:
                    lines.extend(self._rotation_block(rotary, angle))
                    current_angle = angle
            lines.extend(self._sample_block(point, len(plan), enc, reference))

        lines.append(d.comment("Finalize JSON"))
        lines.extend(enc.array_end())
        lines.append("")
        lines.extend(self._trailer(kind, len(plan), origin, reference, rotary))
        return self._finish(Program(kind=kind, lines=lines, total_points=len(plan)))

    def _rotation_block(self, rotary: RotaryScanParameters, angle: float) -> List[str]:
        d = self.d
        axis = rotary.rotary_axis
        lines = [d.comment(f"=== Angle: {d.num(angle)} degrees ===")]
        if rotary.manual_rotary:
            lines.append(d.pause(d.string(f"Rotate the {axis}-axis to {d.num(angle)} degrees, then press OK")))
            lines.append(d.set_location(axis, angle))
        else:
            lines.append(d.rotate(axis, angle))
        lines.append("")
        return lines

    def _sample_block(self, point: Point, total: int, enc: InlineJsonEncoder, reference: str) -> List[str]:
        d, cfg = self.d, self.config
        lines: List[str] = []
        if self.options.point_comments:
            lines.append(d.comment(f"Point {point.index} of {total}"))
        lines.append(d.move_xy(point.x, point.y))
        lines.append(d.probe_z(cfg.max_probe_depth, cfg.probe_speed, cfg.input_number))
        fields = [("x", d.register("X")), ("y", d.register("Y")), ("z", d.register("Z"))]
        if isinstance(point, RotarySamplePoint):
            fields += [("a", d.register("A")), ("b", d.register("B"))]
        fields.append(("i", point.index))
        lines.extend(enc.append_object(fields, first=point.index == 1))
        lines.append(d.assign(RETRACT, offset_from_reference(d, cfg.retract_distance, reference)))
        lines.append(d.move_z(d.var(RETRACT)))
        lines.append("")
        return lines

    def _trailer(
        self,
        kind: str,
        total: int,
        origin: Tuple[float, float],
        reference: str,
        rotary: Optional[RotaryScanParameters],
    ) -> List[str]:
        d = self.d
        lines = [
            d.comment("Return to start"),
            d.assign(SAFE_Z, offset_from_reference(d, self.config.safe_z, reference)),
            d.move_z(d.var(SAFE_Z)),
        ]
        if rotary is not None and not rotary.manual_rotary:
            lines.append(d.rotate(rotary.rotary_axis, 0.0))
        lines.append(d.move_xy(*origin))
        lines += [
            "",
            d.comment("Store metadata"),
            d.assign(TOTAL_POINTS, total),
            d.assign(DONE_FLAGS[kind], 1),
            "",
            d.comment("Set completion flag"),
            d.assign(COMPLETE_FLAG, 1),
            d.pause(d.string("Complete")),
        ]
        return lines

    def _finish(self, program: Program) -> Program:
        logger.info(
            "Generated %s program (%d lines, %d points)",
            program.kind,
            program.line_count,
            program.total_points,
        )
        logger.debug("Program text:\n%s", program.text)
        return program


__all__ = [
    "COMPLETE_FLAG",
    "DATA_VARIABLES",
    "DONE_FLAGS",
    "EmitOptions",
    "Program",
    "ProgramEmitter",
    "TOTAL_POINTS",
]
