"""Controller hosts that accept probing programs and expose their variables."""

from .fabmo import FabMoClient
from .mock import MockHost

__all__ = ["FabMoClient", "MockHost"]
