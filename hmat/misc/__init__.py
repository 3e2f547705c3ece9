"""
Miscellaneous utilities for the H-matrix engine.

The plotting helpers live in :mod:`hmat.misc.plotting` and pull in matplotlib.
"""

from .options import hmatoptions, gethmatoptions


__all__ = [
    'hmatoptions', 'gethmatoptions',
]
