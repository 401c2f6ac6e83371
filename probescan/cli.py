"""Command line front end.

Typical usage::

  probescan generate surface --start-x 0 --start-y 0 --end-x 4 --end-y 3 --spacing 0.25 -o scan.sbp
  probescan generate rotary --start 0 --end 6 --spacing 0.5 --angle-step 30 --rotary-axis A --submit
  probescan decode surface snapshot.json --csv surface.csv
  probescan decode rotary --from-host
  probescan serve --port 8000
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, RotaryScanParameters, ScanParameters, load_config
from .controller import ScanController
from .decoder import Malformed, NotReady, Ok, retrieve
from .errors import HostError, ValidationError
from .export import rotary_csv, rotary_dxf, surface_csv, surface_dxf
from .geometry import ROTARY, SURFACE, ZPROBE
from .host import FabMoClient

logger = logging.getLogger("probescan")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="probescan", description="FabMo probing program generator and decoder")
    ap.add_argument("--config", type=Path, default=Path("probescan.yaml"), help="YAML config file")
    ap.add_argument("-v", "--verbose", action="count", default=0)
    sub = ap.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Write an OpenSBP probing program")
    gen_sub = gen.add_subparsers(dest="kind", required=True)

    surface = gen_sub.add_parser(SURFACE)
    surface.add_argument("--start-x", type=float, required=True)
    surface.add_argument("--start-y", type=float, required=True)
    surface.add_argument("--end-x", type=float, required=True)
    surface.add_argument("--end-y", type=float, required=True)
    surface.add_argument("--spacing", type=float, required=True)

    rotary = gen_sub.add_parser(ROTARY)
    rotary.add_argument("--start", type=float, required=True)
    rotary.add_argument("--end", type=float, required=True)
    rotary.add_argument("--spacing", type=float, required=True)
    rotary.add_argument("--angle-step", type=float, required=True)
    rotary.add_argument("--axis", choices=["X", "Y"], default="X", help="Axis the cylinder lies along")
    rotary.add_argument("--rotary-axis", choices=["A", "B"], default="A")
    rotary.add_argument("--manual", action="store_true", help="Prompt for hand rotation at each angle")

    zprobe = gen_sub.add_parser(ZPROBE)

    for p in (surface, rotary, zprobe):
        p.add_argument("-o", "--out", type=Path, help="Write program here instead of stdout")
        p.add_argument("--submit", action="store_true", help="Send the program to the FabMo host")

    dec = sub.add_parser("decode", help="Decode scan data from a config snapshot")
    dec.add_argument("kind", choices=[SURFACE, ROTARY, ZPROBE])
    dec.add_argument("snapshot", nargs="?", type=Path, help="JSON snapshot of the engine config")
    dec.add_argument("--from-host", action="store_true", help="Read the snapshot from the FabMo host")
    dec.add_argument("--ignore-flag", action="store_true", help="Decode even if &COMPLETE is not set")
    dec.add_argument("--csv", type=Path)
    dec.add_argument("--dxf", type=Path)

    serve = sub.add_parser("serve", help="Run the HTTP control server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    return ap


def _generate(args: argparse.Namespace, cfg: AppConfig) -> int:
    client = FabMoClient(cfg.host) if args.submit else None
    controller = ScanController(host=client, config=cfg.probe, max_points=cfg.max_points)
    if args.kind == SURFACE:
        params = ScanParameters(args.start_x, args.start_y, args.end_x, args.end_y, args.spacing)
        program = controller.surface_program(params)
    elif args.kind == ROTARY:
        params = RotaryScanParameters(
            start=args.start,
            end=args.end,
            spacing=args.spacing,
            angle_step=args.angle_step,
            axis=args.axis,
            rotary_axis=args.rotary_axis,
            manual_rotary=args.manual,
        )
        program = controller.rotary_program(params)
    else:
        program = controller.emitter().z_probe_program()

    if args.out:
        args.out.write_text(program.text + "\n", encoding="utf-8")
        logger.info("Wrote %s (%d lines, %d points)", args.out, program.line_count, program.total_points)
    elif not args.submit:
        sys.stdout.write(program.text + "\n")

    if client is not None:
        client.submit_program(program.text)
        logger.info("Program submitted; decode with --from-host once the job completes")
    return 0


def _decode(args: argparse.Namespace, cfg: AppConfig) -> int:
    if args.from_host:
        snapshot = FabMoClient(cfg.host).get_config()
    elif args.snapshot:
        snapshot = json.loads(args.snapshot.read_text(encoding="utf-8"))
    else:
        raise SystemExit("decode needs a snapshot file or --from-host")

    result = retrieve(args.kind, snapshot, require_complete=not args.ignore_flag)
    if isinstance(result, NotReady):
        logger.warning("Not ready: %s", result.reason)
        return 2
    if isinstance(result, Malformed):
        logger.error("Malformed data: %s", result.reason)
        return 3
    if not isinstance(result, Ok):
        raise TypeError(f"Unexpected retrieval result {result!r}")

    records = [p.to_dict() for p in result.points]
    sys.stdout.write(json.dumps(records, indent=2) + "\n")
    if args.kind == ZPROBE:
        return 0
    if args.csv:
        writer = surface_csv if args.kind == SURFACE else rotary_csv
        args.csv.write_text(writer(result.points), encoding="utf-8")
    if args.dxf:
        writer = surface_dxf if args.kind == SURFACE else rotary_dxf
        args.dxf.write_text(writer(result.points), encoding="utf-8")
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    os.environ.setdefault("PROBESCAN_CONFIG", str(args.config))
    uvicorn.run("probescan.server.app:app", host=args.host, port=args.port, reload=False)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = load_config(args.config)
    try:
        if args.command == "generate":
            return _generate(args, cfg)
        if args.command == "decode":
            return _decode(args, cfg)
        return _serve(args)
    except ValidationError as exc:
        logger.error("Invalid parameters: %s", exc)
        return 1
    except HostError as exc:
        logger.error("Host error: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
