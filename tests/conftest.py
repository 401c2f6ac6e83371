from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from probescan.config import ProbeConfig, ScanParameters


@pytest.fixture()
def probe_config() -> ProbeConfig:
    return ProbeConfig(
        probe_speed=1.0,
        safe_z=0.5,
        retract_distance=0.125,
        input_number=7,
        max_probe_depth=-2.0,
    )


@pytest.fixture()
def small_grid() -> ScanParameters:
    return ScanParameters(start_x=0.0, start_y=0.0, end_x=1.0, end_y=1.0, spacing=0.5)
