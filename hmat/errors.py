"""
Typed failures raised by the H-matrix engine.

All errors are contract violations detected at the API boundary, before any
numeric work is done. They are never recovered internally.
"""

from typing import Any, Optional


class HMatError(Exception):
    """Base class for all H-matrix engine errors."""


class DimensionMismatchError(HMatError, ValueError):
    """
    Operand shape inconsistent with the cluster tree DOF counts.

    Parameters
    ----------
    what : str
        Description of the offending operand
    expected : int or tuple
        Expected size or shape
    actual : int or tuple
        Size or shape actually supplied
    """

    def __init__(self,
            what: str,
            expected: Any,
            actual: Any) -> None:

        self.what = what
        self.expected = expected
        self.actual = actual
        super(DimensionMismatchError, self).__init__(
            '[error] {}: expected {}, got {}'.format(what, expected, actual))


class UninitializedAccessError(HMatError, RuntimeError):
    """H-matrix data accessed before initialize() or after reset()."""

    def __init__(self, operation: str) -> None:

        self.operation = operation
        super(UninitializedAccessError, self).__init__(
            '[error] H-matrix is not initialized, cannot {}'.format(operation))


class InvalidPermutationIndexError(HMatError, IndexError):
    """DOF index outside [0, size) passed to a permutation lookup."""

    def __init__(self,
            index: int,
            size: int,
            kind: Optional[str] = None) -> None:

        self.index = index
        self.size = size
        self.kind = kind
        label = '{} index'.format(kind) if kind else 'index'
        super(InvalidPermutationIndexError, self).__init__(
            '[error] DOF {} {} out of range [0, {})'.format(label, index, size))


class ClusterTreeError(HMatError, ValueError):
    """Malformed cluster tree or block cluster tree input."""
