"""Configuration models for the probing application."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ValidationError

MAX_POINTS = 10000
FULL_TURN_DEG = 360.0

# floor((end - start) / spacing) is taken with this tolerance so that ranges such
# as 0.3 / 0.1 are not cut short by binary floating point.
COUNT_EPSILON = 1e-9

_PROBE_KEYS = {
    "plate_thickness": "plateThickness",
    "probe_speed": "probeSpeed",
    "safe_z": "safeZ",
    "retract_distance": "retractDistance",
    "input_number": "inputNumber",
    "max_probe_depth": "maxProbeDepth",
    "corner_block_size": "cornerBlockSize",
}


def step_count(span: float, step: float) -> int:
    """Number of whole ``step`` intervals that fit in ``span``."""

    return int(math.floor(span / step + COUNT_EPSILON))


@dataclass
class ProbeConfig:
    """Probe hardware settings required by every generated program."""

    plate_thickness: float = 0.5
    probe_speed: float = 1.0
    safe_z: float = 0.5
    retract_distance: float = 0.125
    input_number: int = 7
    max_probe_depth: float = -2.0
    corner_block_size: float = 2.0

    def validate(self) -> None:
        if self.probe_speed <= 0:
            raise ValidationError("Probe speed must be positive")
        if self.safe_z <= 0:
            raise ValidationError("Safe Z must be positive")
        if self.retract_distance <= 0:
            raise ValidationError("Retract distance must be positive")
        if self.input_number < 1:
            raise ValidationError("Input number must be 1 or greater")

    def to_dict(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for attr, wire in _PROBE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbeConfig":
        defaults = cls()
        values: Dict[str, Any] = {}
        for attr, wire in _PROBE_KEYS.items():
            raw = data.get(wire, data.get(attr, getattr(defaults, attr)))
            values[attr] = int(raw) if attr == "input_number" else float(raw)
        return cls(**values)


@dataclass
class ScanParameters:
    """Rectangular surface scan area in work coordinates (inches)."""

    start_x: float
    start_y: float
    end_x: float
    end_y: float
    spacing: float

    @property
    def x_count(self) -> int:
        return step_count(self.end_x - self.start_x, self.spacing) + 1

    @property
    def y_count(self) -> int:
        return step_count(self.end_y - self.start_y, self.spacing) + 1

    @property
    def total_points(self) -> int:
        return self.x_count * self.y_count


@dataclass
class RotaryScanParameters:
    """Angle by linear position sweep around a cylinder on a rotary axis."""

    start: float
    end: float
    spacing: float
    angle_step: float
    axis: str = "X"  # linear axis the cylinder lies along
    rotary_axis: str = "A"
    manual_rotary: bool = False

    def __post_init__(self) -> None:
        self.axis = str(self.axis).upper()
        self.rotary_axis = str(self.rotary_axis).upper()

    @property
    def num_angles(self) -> int:
        return step_count(FULL_TURN_DEG, self.angle_step)

    @property
    def linear_count(self) -> int:
        return step_count(self.end - self.start, self.spacing) + 1

    @property
    def total_points(self) -> int:
        return self.num_angles * self.linear_count


@dataclass
class HostSettings:
    """Connection settings for the FabMo engine HTTP API."""

    base_url: str = "http://localhost"
    timeout_s: float = 10.0


@dataclass
class AppConfig:
    """Everything persisted between sessions."""

    probe: ProbeConfig = field(default_factory=ProbeConfig)
    host: HostSettings = field(default_factory=HostSettings)
    max_points: int = MAX_POINTS


def load_config(path: Path) -> AppConfig:
    """Load YAML config, falling back to defaults for anything missing."""

    path = Path(path)
    if not path.exists():
        return AppConfig()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    host = data.get("host") or {}
    return AppConfig(
        probe=ProbeConfig.from_dict(data.get("probe") or {}),
        host=HostSettings(
            base_url=str(host.get("base_url", HostSettings.base_url)).rstrip("/"),
            timeout_s=float(host.get("timeout_s", HostSettings.timeout_s)),
        ),
        max_points=int(data.get("max_points", MAX_POINTS)),
    )


def save_config(path: Path, config: AppConfig) -> Path:
    path = Path(path)
    data: Dict[str, Any] = {
        "probe": config.probe.to_dict(),
        "host": {"base_url": config.host.base_url, "timeout_s": config.host.timeout_s},
        "max_points": config.max_points,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path
