"""High level orchestration for the probing server and CLI."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import MAX_POINTS, ProbeConfig, RotaryScanParameters, ScanParameters
from .decoder import Ok, Retrieval, retrieve
from .errors import HostError, ScanBusyError
from .geometry import ROTARY, SURFACE, ZPROBE, ScanSession, ZProbeReading
from .host import MockHost
from .rendering import EmitOptions, Program, ProgramEmitter

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


@dataclass
class SubmitResult:
    ok: bool
    kind: str
    total_points: int = 0
    line_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "kind": self.kind,
            "total_points": self.total_points,
            "line_count": self.line_count,
            "error": self.error,
        }


@dataclass
class ScanController:
    """Coordinate program generation, submission and retrieval."""

    host: Any = field(default_factory=MockHost)
    config: ProbeConfig = field(default_factory=ProbeConfig)
    max_points: int = MAX_POINTS
    emit_options: EmitOptions = field(default_factory=EmitOptions)
    status_cb: Optional[StatusCallback] = None

    def __post_init__(self) -> None:
        self.sessions: Dict[str, ScanSession] = {
            SURFACE: ScanSession(kind=SURFACE),
            ROTARY: ScanSession(kind=ROTARY),
        }
        self.last_probe: Optional[ZProbeReading] = None
        self._submit_lock = threading.Lock()

    def _status(self, message: str) -> None:
        logger.info(message)
        if self.status_cb:
            self.status_cb(message)

    def emitter(self) -> ProgramEmitter:
        return ProgramEmitter(self.config, options=self.emit_options, max_points=self.max_points)

    def set_config(self, config: ProbeConfig) -> None:
        config.validate()
        self.config = config

    @property
    def busy(self) -> bool:
        return self._submit_lock.locked()

    # ------------------------------------------------------------------
    # Program generation
    # ------------------------------------------------------------------
    def surface_program(self, params: ScanParameters) -> Program:
        return self.emitter().surface_program(params)

    def rotary_program(self, params: RotaryScanParameters) -> Program:
        return self.emitter().rotary_program(params)

    # ------------------------------------------------------------------
    # Job submission
    # ------------------------------------------------------------------
    def run_surface_scan(self, params: ScanParameters) -> SubmitResult:
        program = self.surface_program(params)
        self._status(
            f"Starting surface scan: {params.x_count}x{params.y_count} grid ({program.total_points} points)"
        )
        return self._submit(program, session=self.sessions[SURFACE])

    def run_rotary_scan(self, params: RotaryScanParameters) -> SubmitResult:
        program = self.rotary_program(params)
        mode = "Manual" if params.manual_rotary else "Automatic"
        self._status(
            f"Starting rotary scan ({mode}): {params.num_angles} angles x "
            f"{params.linear_count} points = {program.total_points} total"
        )
        return self._submit(program, session=self.sessions[ROTARY])

    def run_z_probe(self) -> SubmitResult:
        program = self.emitter().z_probe_program()
        self._status("Starting Z-axis probe")
        self.last_probe = None
        return self._submit(program)

    def _submit(self, program: Program, *, session: Optional[ScanSession] = None) -> SubmitResult:
        if not self._submit_lock.acquire(blocking=False):
            raise ScanBusyError("A probing program is already being submitted")
        try:
            if session is not None:
                session.begin()
            try:
                self.host.submit_program(program.text)
            except HostError as exc:
                self._status(f"Submitting {program.kind} program failed: {exc}")
                return SubmitResult(ok=False, kind=program.kind, error=str(exc))
            self._status(f"{program.kind} program submitted. Retrieve data when complete.")
            return SubmitResult(
                ok=True,
                kind=program.kind,
                total_points=program.total_points,
                line_count=program.line_count,
            )
        finally:
            self._submit_lock.release()

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------
    def retrieve(self, kind: str, *, require_complete: bool = True) -> Retrieval:
        snapshot = self.host.get_config()
        result = retrieve(kind, snapshot, require_complete=require_complete)
        if isinstance(result, Ok):
            if kind == ZPROBE:
                self.last_probe = result.points[0] if result.points else None
            else:
                self.sessions[kind].finish(result.points)
            self._status(f"Retrieved {len(result.points)} {kind} records")
        else:
            self._status(f"No {kind} data available ({result.status})")
        return result

    def retrieve_surface(self, **kwargs: Any) -> Retrieval:
        return self.retrieve(SURFACE, **kwargs)

    def retrieve_rotary(self, **kwargs: Any) -> Retrieval:
        return self.retrieve(ROTARY, **kwargs)

    def retrieve_z_probe(self, **kwargs: Any) -> Retrieval:
        return self.retrieve(ZPROBE, **kwargs)

    def session(self, kind: str) -> ScanSession:
        return self.sessions[kind]

    def close(self) -> None:
        self.host.close()


__all__ = ["ScanController", "SubmitResult"]
