"""
H-matrix storage and application.

Classes:
- BlockData: dense or low-rank payload of one leaf
- TransposeMode: operator selection for apply
- HMatrixCompressor: strategy interface producing BlockData per leaf
- DenseCompressor, FunctionCompressor: concrete strategies
- HMatrix: the hierarchical matrix
"""

from .blockdata import BlockData, BlockKind, TransposeMode, apply_block
from .compressor import HMatrixCompressor, DenseCompressor, FunctionCompressor
from .hmatrix import HMatrix

__all__ = [
    "BlockData",
    "BlockKind",
    "TransposeMode",
    "apply_block",
    "HMatrixCompressor",
    "DenseCompressor",
    "FunctionCompressor",
    "HMatrix",
]
