"""Sample pattern generation for surface and rotary scans."""

from __future__ import annotations

from typing import List

from .config import FULL_TURN_DEG, MAX_POINTS, RotaryScanParameters, ScanParameters
from .errors import ValidationError
from .geometry import RotarySamplePoint, SamplePoint

LINEAR_AXES = ("X", "Y")
ROTARY_AXES = ("A", "B")


def validate_surface(params: ScanParameters, max_points: int = MAX_POINTS) -> None:
    if params.start_x >= params.end_x or params.start_y >= params.end_y:
        raise ValidationError("Invalid scan area: end coordinates must be greater than start")
    if params.spacing <= 0:
        raise ValidationError("Grid spacing must be positive")
    total = params.total_points
    if total > max_points:
        raise ValidationError(
            f"Too many points ({total}). Maximum is {max_points}. Increase grid spacing."
        )


def validate_rotary(params: RotaryScanParameters, max_points: int = MAX_POINTS) -> None:
    if params.axis not in LINEAR_AXES:
        raise ValidationError(f"Linear axis must be one of {LINEAR_AXES}, got {params.axis!r}")
    if params.rotary_axis not in ROTARY_AXES:
        raise ValidationError(f"Rotary axis must be one of {ROTARY_AXES}, got {params.rotary_axis!r}")
    if params.start >= params.end:
        raise ValidationError("Invalid range: end position must be greater than start")
    if params.spacing <= 0:
        raise ValidationError("Spacing must be positive")
    if params.angle_step <= 0 or params.angle_step > FULL_TURN_DEG:
        raise ValidationError("Angle step must be greater than 0 and at most 360 degrees")
    total = params.total_points
    if total > max_points:
        raise ValidationError(
            f"Too many points ({total}). Maximum is {max_points}. Reduce angles or increase spacing."
        )


def plan_surface(params: ScanParameters, *, max_points: int = MAX_POINTS) -> List[SamplePoint]:
    """Serpentine raster over the rectangle, row by row in Y.

    Even rows run in +X, odd rows run back in -X. Indices are 1-based in
    visitation order. Positions are clamped to the far edge, since the count
    tolerance can otherwise put the last row or column a rounding error past it.
    """

    validate_surface(params, max_points)
    x_count, y_count = params.x_count, params.y_count
    points: List[SamplePoint] = []
    for yi in range(y_count):
        y = min(float(params.start_y + yi * params.spacing), float(params.end_y))
        reverse = yi % 2 == 1
        for xi in range(x_count):
            column = x_count - 1 - xi if reverse else xi
            x = min(float(params.start_x + column * params.spacing), float(params.end_x))
            points.append(SamplePoint(index=len(points) + 1, x=x, y=y))
    return points


def plan_rotary(params: RotaryScanParameters, *, max_points: int = MAX_POINTS) -> List[RotarySamplePoint]:
    """Angle-major sweep: every linear position at 0, step, 2*step, ... < 360."""

    validate_rotary(params, max_points)
    points: List[RotarySamplePoint] = []
    for k in range(params.num_angles):
        angle = float(k * params.angle_step)
        a, b = (angle, 0.0) if params.rotary_axis == "A" else (0.0, angle)
        for i in range(params.linear_count):
            pos = min(float(params.start + i * params.spacing), float(params.end))
            x, y = (pos, 0.0) if params.axis == "X" else (0.0, pos)
            points.append(RotarySamplePoint(index=len(points) + 1, x=x, y=y, a=a, b=b))
    return points


def angles(params: RotaryScanParameters) -> List[float]:
    return [float(k * params.angle_step) for k in range(params.num_angles)]


__all__ = [
    "LINEAR_AXES",
    "ROTARY_AXES",
    "angles",
    "plan_rotary",
    "plan_surface",
    "validate_rotary",
    "validate_surface",
]
