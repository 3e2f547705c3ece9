"""
hmat - hierarchical matrices for boundary-integral operators

Main modules:
- tree: cluster trees, block cluster trees, admissibility
- matrix: block data, compression strategies, H-matrix apply
- solver: iterative solution with H-matrix operators
- misc: options and plotting
"""

__version__ = "0.1.0"

from .errors import (HMatError, DimensionMismatchError, UninitializedAccessError,
    InvalidPermutationIndexError, ClusterTreeError)
from .misc import hmatoptions, gethmatoptions
from .tree import ClusterTree, BlockClusterTree, BlockClusterTreeNode, StrongAdmissibility
from .matrix import (BlockData, BlockKind, TransposeMode, HMatrixCompressor,
    DenseCompressor, FunctionCompressor, HMatrix)
from .solver import HMatIter
from .misc.plotting import plot_blocks

__all__ = [
    "HMatError",
    "DimensionMismatchError",
    "UninitializedAccessError",
    "InvalidPermutationIndexError",
    "ClusterTreeError",
    "hmatoptions",
    "gethmatoptions",
    "ClusterTree",
    "BlockClusterTree",
    "BlockClusterTreeNode",
    "StrongAdmissibility",
    "BlockData",
    "BlockKind",
    "TransposeMode",
    "HMatrixCompressor",
    "DenseCompressor",
    "FunctionCompressor",
    "HMatrix",
    "HMatIter",
    "plot_blocks",
]
