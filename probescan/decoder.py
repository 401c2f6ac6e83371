"""Turn the engine's variable store back into point records.

The FabMo engine exposes program variables through its configuration
snapshot under ``opensbp.variables`` / ``opensbp.tempVariables`` with the
names upper-cased. Retrieval is a one-shot read of that snapshot and has three
outcomes:

* :class:`NotReady` - the shared ``&COMPLETE`` flag or the job's own done
  flag (``&SCANCOMPLETE``, ``&ROTARYCOMPLETE``, ``&PROBECOMPLETE``) is not set,
* :class:`Malformed` - the flag is set but the accumulator does not parse,
* :class:`Ok` - the decoded records (empty if the variable was never written).

A snapshot without any variable store raises :class:`HostConfigError`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from .encoding import decode_array, decode_value
from .errors import HostConfigError, MalformedAccumulatorError
from .geometry import ROTARY, SURFACE, ZPROBE, Point, RotarySamplePoint, SamplePoint, ZProbeReading
from .rendering import COMPLETE_FLAG, DATA_VARIABLES, DONE_FLAGS

logger = logging.getLogger(__name__)

_STORE_KEYS = ("variables", "tempVariables")


@dataclass(frozen=True)
class NotReady:
    status: ClassVar[str] = "not_ready"
    reason: str = "completion flag not set"


@dataclass(frozen=True)
class Malformed:
    status: ClassVar[str] = "malformed"
    raw_text: str
    reason: str


@dataclass(frozen=True)
class Ok:
    status: ClassVar[str] = "ok"
    points: List[Any] = field(default_factory=list)


Retrieval = Union[NotReady, Malformed, Ok]


# ---------------------------------------------------------------------------
# Snapshot access
# ---------------------------------------------------------------------------


def variable_store(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """Flat, upper-cased view of every program variable in ``snapshot``."""

    opensbp = snapshot.get("opensbp") if isinstance(snapshot, Mapping) else None
    if not isinstance(opensbp, Mapping):
        raise HostConfigError("Host configuration has no 'opensbp' section")
    stores = [opensbp[k] for k in _STORE_KEYS if isinstance(opensbp.get(k), Mapping)]
    if not stores:
        raise HostConfigError("Host configuration has no program variable store")
    merged: Dict[str, Any] = {}
    for store in stores:
        for name, value in store.items():
            merged[str(name).lstrip("&").upper()] = value
    return merged


def flag_is_set(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        try:
            return float(value.strip()) != 0
        except ValueError:
            return value.strip().lower() == "true"
    return False


def is_complete(store: Mapping[str, Any], kind: Optional[str] = None) -> bool:
    """Shared flag set and, for ``kind``, that job's own done flag too."""

    if not flag_is_set(store.get(COMPLETE_FLAG)):
        return False
    return kind is None or flag_is_set(store.get(DONE_FLAGS[kind]))


# ---------------------------------------------------------------------------
# Record mapping
# ---------------------------------------------------------------------------


def _surface_point(raw: Dict[str, Any]) -> SamplePoint:
    return SamplePoint(index=int(raw["i"]), x=raw["x"], y=raw["y"], z=raw["z"])


def _rotary_point(raw: Dict[str, Any]) -> RotarySamplePoint:
    return RotarySamplePoint(
        index=int(raw["i"]), x=raw["x"], y=raw["y"], z=raw["z"], a=raw["a"], b=raw["b"]
    )


_MAPPERS = {SURFACE: _surface_point, ROTARY: _rotary_point}


def decode_points(kind: str, text: Any) -> List[Point]:
    """Decode accumulator text into typed records; raises on malformed input."""

    mapper = _MAPPERS[kind]
    objects = decode_array(text)
    try:
        return [mapper(obj) for obj in objects]
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedAccumulatorError(str(text), f"record missing or bad field: {exc}") from exc


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


def _retrieve(kind: str, snapshot: Mapping[str, Any], require_complete: bool) -> Retrieval:
    store = variable_store(snapshot)
    name = DATA_VARIABLES[kind]
    if require_complete and not is_complete(store, kind):
        logger.info("%s data not ready: &%s or &%s is not set", kind, COMPLETE_FLAG, DONE_FLAGS[kind])
        return NotReady()
    text = store.get(name)
    if text is None or text == "":
        logger.warning("No %s data found in &%s", kind, name)
        return Ok([])
    try:
        if kind == ZPROBE:
            points: List[Any] = [_z_reading(text)]
        else:
            points = decode_points(kind, text)
    except MalformedAccumulatorError as exc:
        logger.error("Malformed %s data in &%s: %s", kind, name, exc.reason)
        logger.debug("Raw &%s = %r", name, exc.raw_text)
        return Malformed(raw_text=exc.raw_text, reason=exc.reason)
    logger.info("Retrieved %d %s records from &%s", len(points), kind, name)
    return Ok(points)


def _z_reading(text: Any) -> ZProbeReading:
    data = decode_value(text)
    if not isinstance(data, dict) or "probeZ" not in data:
        raise MalformedAccumulatorError(str(text), "probe object has no probeZ field")
    try:
        return ZProbeReading(probe_z=float(data["probeZ"]), complete=flag_is_set(data.get("complete")))
    except (TypeError, ValueError) as exc:
        raise MalformedAccumulatorError(str(text), f"bad probeZ value: {exc}") from exc


def retrieve_surface(snapshot: Mapping[str, Any], *, require_complete: bool = True) -> Retrieval:
    return _retrieve(SURFACE, snapshot, require_complete)


def retrieve_rotary(snapshot: Mapping[str, Any], *, require_complete: bool = True) -> Retrieval:
    return _retrieve(ROTARY, snapshot, require_complete)


def retrieve_z_probe(snapshot: Mapping[str, Any], *, require_complete: bool = True) -> Retrieval:
    return _retrieve(ZPROBE, snapshot, require_complete)


def retrieve(kind: str, snapshot: Mapping[str, Any], *, require_complete: bool = True) -> Retrieval:
    if kind not in DATA_VARIABLES:
        raise ValueError(f"Unknown scan kind {kind!r}")
    return _retrieve(kind, snapshot, require_complete)


__all__ = [
    "Malformed",
    "NotReady",
    "Ok",
    "Retrieval",
    "decode_points",
    "flag_is_set",
    "is_complete",
    "retrieve",
    "retrieve_rotary",
    "retrieve_surface",
    "retrieve_z_probe",
    "variable_store",
]
