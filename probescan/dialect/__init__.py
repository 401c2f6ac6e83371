"""Statement vocabularies for the controllers probescan can target."""

from .opensbp import OpenSBP, REGISTERS

__all__ = ["OpenSBP", "REGISTERS"]
