"""
Folio - Position & Return Computation Engine

Replays ownership events into positions and computes portfolio returns.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("folio")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
