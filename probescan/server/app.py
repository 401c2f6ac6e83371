"""FastAPI application backing the browser probing panel."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..config import ProbeConfig, RotaryScanParameters, ScanParameters, load_config, save_config
from ..controller import ScanController, SubmitResult
from ..decoder import Malformed, Ok
from ..errors import HostError, ScanBusyError, ValidationError
from ..export import export_filename, rotary_csv, rotary_dxf, surface_csv, surface_dxf
from ..geometry import ROTARY, SURFACE, ZPROBE
from ..host import FabMoClient

CONFIG_ENV = "PROBESCAN_CONFIG"
DEFAULT_CONFIG = Path("probescan.yaml")

_EXPORTERS = {
    (SURFACE, "csv"): surface_csv,
    (SURFACE, "dxf"): surface_dxf,
    (ROTARY, "csv"): rotary_csv,
    (ROTARY, "dxf"): rotary_dxf,
}


def create_controller(config_path: Optional[Path] = None) -> ScanController:
    app_config = load_config(config_path or DEFAULT_CONFIG)
    return ScanController(
        host=FabMoClient(app_config.host),
        config=app_config.probe,
        max_points=app_config.max_points,
    )


def _surface_params(payload: Dict[str, Any]) -> ScanParameters:
    try:
        return ScanParameters(
            start_x=float(payload["startX"]),
            start_y=float(payload["startY"]),
            end_x=float(payload["endX"]),
            end_y=float(payload["endY"]),
            spacing=float(payload["spacing"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid surface scan parameters: {exc}") from exc


def _rotary_params(payload: Dict[str, Any]) -> RotaryScanParameters:
    try:
        return RotaryScanParameters(
            start=float(payload["start"]),
            end=float(payload["end"]),
            spacing=float(payload["spacing"]),
            angle_step=float(payload["angleStep"]),
            axis=str(payload.get("axis", "X")),
            rotary_axis=str(payload.get("rotaryAxis", "A")),
            manual_rotary=bool(payload.get("manualRotary", False)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid rotary scan parameters: {exc}") from exc


def _submitted(result: SubmitResult) -> Dict[str, Any]:
    if not result.ok:
        raise HTTPException(status_code=502, detail=result.error)
    return result.to_dict()


def create_app(controller: ScanController, *, config_path: Optional[Path] = None) -> FastAPI:
    app = FastAPI(title="Probe Scan Control Server")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.controller = controller

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/status")
    def status() -> Dict[str, Any]:
        return {
            "busy": controller.busy,
            "sessions": {kind: s.summary() for kind, s in controller.sessions.items()},
            "last_probe": controller.last_probe.to_dict() if controller.last_probe else None,
        }

    # ---------------------------------------------------------------- config
    @app.get("/api/config")
    def get_config() -> Dict[str, Any]:
        return controller.config.to_dict()

    @app.put("/api/config")
    def put_config(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            config = ProbeConfig.from_dict(payload)
            controller.set_config(config)
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if config_path is not None:
            app_config = load_config(config_path)
            app_config.probe = config
            save_config(config_path, app_config)
        return config.to_dict()

    # ---------------------------------------------------------------- programs
    @app.post("/api/program/{kind}")
    def preview_program(kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            if kind == SURFACE:
                program = controller.surface_program(_surface_params(payload))
            elif kind == ROTARY:
                program = controller.rotary_program(_rotary_params(payload))
            elif kind == ZPROBE:
                program = controller.emitter().z_probe_program()
            else:
                raise HTTPException(status_code=404, detail=f"Unknown program kind {kind!r}")
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "kind": program.kind,
            "total_points": program.total_points,
            "line_count": program.line_count,
            "program": program.text,
        }

    # ---------------------------------------------------------------- jobs
    @app.post("/api/scan/surface")
    def scan_surface(payload: Dict[str, Any]) -> Dict[str, Any]:
        params = _surface_params(payload)
        try:
            return _submitted(controller.run_surface_scan(params))
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ScanBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    @app.post("/api/scan/rotary")
    def scan_rotary(payload: Dict[str, Any]) -> Dict[str, Any]:
        params = _rotary_params(payload)
        try:
            return _submitted(controller.run_rotary_scan(params))
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ScanBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    @app.post("/api/probe/z")
    def probe_z() -> Dict[str, Any]:
        try:
            return _submitted(controller.run_z_probe())
        except ScanBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    # ---------------------------------------------------------------- results
    @app.post("/api/retrieve/{kind}")
    def retrieve(kind: str, require_complete: bool = True) -> Dict[str, Any]:
        if kind not in (SURFACE, ROTARY, ZPROBE):
            raise HTTPException(status_code=404, detail=f"Unknown scan kind {kind!r}")
        try:
            result = controller.retrieve(kind, require_complete=require_complete)
        except HostError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        body: Dict[str, Any] = {"status": result.status}
        if isinstance(result, Ok):
            body["points"] = [p.to_dict() for p in result.points]
            if kind != ZPROBE:
                body["summary"] = controller.session(kind).summary()
        elif isinstance(result, Malformed):
            body["reason"] = result.reason
            body["raw_text"] = result.raw_text
        else:
            body["reason"] = result.reason
        return body

    @app.get("/api/session/{kind}")
    def session(kind: str) -> Dict[str, Any]:
        if kind not in controller.sessions:
            raise HTTPException(status_code=404, detail=f"Unknown scan kind {kind!r}")
        s = controller.session(kind)
        return {**s.to_dict(), "summary": s.summary()}

    @app.get("/api/export/{kind}/{fmt}")
    def export(kind: str, fmt: str) -> PlainTextResponse:
        exporter = _EXPORTERS.get((kind, fmt))
        if exporter is None:
            raise HTTPException(status_code=404, detail=f"No {fmt} export for {kind}")
        points = controller.session(kind).points
        if not points:
            raise HTTPException(status_code=404, detail=f"No {kind} scan data to export")
        filename = export_filename(kind, fmt)
        return PlainTextResponse(
            exporter(points),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


_config_path = Path(os.environ[CONFIG_ENV]) if os.environ.get(CONFIG_ENV) else None
controller = create_controller(_config_path)
app = create_app(controller, config_path=_config_path)


__all__ = ["app", "controller", "create_app", "create_controller"]
