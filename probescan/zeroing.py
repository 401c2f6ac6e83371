"""Z reference routines run before the sampling loop.

Both routines ask the operator to place the probe on a reference feature,
probe it once, ask for the feature's known dimension and then rise to the safe
height above it. The entered value stays in a program variable that every
later retract and safe-height statement refers to.
"""
from __future__ import annotations

from typing import List

from .config import ProbeConfig
from .dialect import OpenSBP
from .geometry import ROTARY, SURFACE

KNOWN_HEIGHT = "KNOWNHEIGHT"
CYLINDER_RADIUS = "CYLINDERRADIUS"
SAFE_Z = "SAFEZ"
RETRACT = "RETRACTBACK"


def reference_variable(kind: str) -> str:
    if kind == SURFACE:
        return KNOWN_HEIGHT
    if kind == ROTARY:
        return CYLINDER_RADIUS
    raise ValueError(f"No zeroing reference for scan kind {kind!r}")


def offset_from_reference(dialect: OpenSBP, offset: float, reference: str) -> str:
    """Expression ``0 + offset + &REFERENCE`` (forces numeric addition)."""

    return dialect.concat("0.00", dialect.num(offset), dialect.var(reference))


def surface_zero_routine(config: ProbeConfig, dialect: OpenSBP) -> List[str]:
    d = dialect
    return [
        d.comment("=== Z-Axis Zeroing Routine (Surface Scan) ==="),
        d.assign(SAFE_Z, 0),
        d.assign(RETRACT, 0),
        "",
        d.prompt("Position the probe over a known flat area on your workpiece, then press X"),
        d.set_speed(config.probe_speed),
        d.probe_z(config.max_probe_depth, config.probe_speed, config.input_number),
        d.zero_z(),
        "",
        d.comment("Reference height entered by the operator"),
        d.assign(KNOWN_HEIGHT, 0),
        d.dialog_input("Enter the Z height of this reference surface (in inches): ", KNOWN_HEIGHT),
        d.to_number(KNOWN_HEIGHT),
        d.set_location("Z", d.var(KNOWN_HEIGHT)),
        "",
        d.assign(SAFE_Z, offset_from_reference(d, config.safe_z, KNOWN_HEIGHT)),
        d.move_z(d.var(SAFE_Z)),
        d.pause(
            d.concat(
                d.string("Z-axis zeroed! Reference height set to "),
                d.var(KNOWN_HEIGHT),
                d.string(" inches. Press OK to continue."),
            )
        ),
        "",
    ]


def rotary_zero_routine(config: ProbeConfig, dialect: OpenSBP) -> List[str]:
    d = dialect
    return [
        d.comment("=== Z-Axis Zeroing Routine (Rotary Scan) ==="),
        d.assign(SAFE_Z, 0),
        d.assign(RETRACT, 0),
        "",
        d.prompt("Position the probe at the TOP of the cylinder, then press OK"),
        d.set_speed(config.probe_speed),
        d.probe_z(config.max_probe_depth, config.probe_speed, config.input_number),
        "",
        d.comment("Cylinder radius entered by the operator; top of cylinder is Z = radius"),
        d.assign(CYLINDER_RADIUS, 0),
        d.dialog_input("Enter the radius of the cylinder (in inches): ", CYLINDER_RADIUS),
        d.to_number(CYLINDER_RADIUS),
        d.set_location("Z", d.var(CYLINDER_RADIUS)),
        "",
        d.assign(SAFE_Z, offset_from_reference(d, config.safe_z, CYLINDER_RADIUS)),
        d.move_z(d.var(SAFE_Z)),
        d.pause(
            d.concat(
                d.string("Z-axis zeroed! Cylinder radius set to "),
                d.var(CYLINDER_RADIUS),
                d.string(" inches. Press OK to continue."),
            )
        ),
        "",
    ]


def zero_routine(kind: str, config: ProbeConfig, dialect: OpenSBP) -> List[str]:
    if kind == SURFACE:
        return surface_zero_routine(config, dialect)
    if kind == ROTARY:
        return rotary_zero_routine(config, dialect)
    raise ValueError(f"No zeroing routine for scan kind {kind!r}")


__all__ = [
    "CYLINDER_RADIUS",
    "KNOWN_HEIGHT",
    "RETRACT",
    "SAFE_Z",
    "offset_from_reference",
    "reference_variable",
    "rotary_zero_routine",
    "surface_zero_routine",
    "zero_routine",
]
