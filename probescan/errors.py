"""Exception types shared across the probescan package."""

from __future__ import annotations


class ProbeScanError(Exception):
    """Base class for all probescan failures."""


class ValidationError(ProbeScanError, ValueError):
    """Raised when scan or probe parameters are rejected before planning."""


class HostError(ProbeScanError):
    """Raised when the controller host rejects a request or cannot be reached."""


class HostConfigError(HostError):
    """Raised when the host snapshot has no variable store at all."""


class ScanBusyError(ProbeScanError, RuntimeError):
    """Raised when a program is submitted while another submission is outstanding."""


class MalformedAccumulatorError(ProbeScanError):
    """Raised when accumulator text is not valid JSON after placeholder substitution."""

    def __init__(self, raw_text: str, reason: str) -> None:
        super().__init__(reason)
        self.raw_text = raw_text
        self.reason = reason


__all__ = [
    "HostConfigError",
    "HostError",
    "MalformedAccumulatorError",
    "ProbeScanError",
    "ScanBusyError",
    "ValidationError",
]
