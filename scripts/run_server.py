"""Launch the probescan control server next to a FabMo engine.

The config file is passed to the app through ``PROBESCAN_CONFIG`` since uvicorn
imports the app module itself.
"""
from __future__ import annotations

import argparse
import logging
import os

import uvicorn

CONFIG_ENV = "PROBESCAN_CONFIG"


def main() -> None:
    ap = argparse.ArgumentParser(description="Run the probescan control server")
    ap.add_argument("--config", default="probescan.yaml")
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=8000)
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    os.environ[CONFIG_ENV] = args.config
    uvicorn.run("probescan.server.app:app", host=args.host, port=args.port, reload=False)


if __name__ == "__main__":
    main()
