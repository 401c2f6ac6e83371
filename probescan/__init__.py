"""Top-level package for the probescan toolkit.

This package generates OpenSBP surface and rotary probing programs for FabMo
controlled machines, decodes the measurements the programs leave in the
engine's variable store, and serves the browser control interface.
"""

from .config import ProbeConfig, RotaryScanParameters, ScanParameters
from .controller import ScanController
from .decoder import Malformed, NotReady, Ok
from .geometry import RotarySamplePoint, SamplePoint, ScanSession
from .rendering import ProgramEmitter
from .toolpath import plan_rotary, plan_surface

__all__ = [
    "Malformed",
    "NotReady",
    "Ok",
    "ProbeConfig",
    "ProgramEmitter",
    "RotaryScanParameters",
    "RotarySamplePoint",
    "SamplePoint",
    "ScanController",
    "ScanParameters",
    "ScanSession",
    "plan_rotary",
    "plan_surface",
]
