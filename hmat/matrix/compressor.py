import abc

import numpy as np
from typing import Callable

from ..tree.blockclustertree import BlockClusterTree, BlockClusterTreeNode
from .blockdata import BlockData


class HMatrixCompressor(abc.ABC):

    # Strategy that turns one block cluster tree leaf into BlockData.
    # Implementations must be deterministic for a fixed leaf and kernel, must
    # return low-rank data only for admissible leaves and dense data for
    # inadmissible ones. The engine checks shapes, not ranks.

    @abc.abstractmethod
    def compress_block(self,
            block_tree: BlockClusterTree,
            leaf: BlockClusterTreeNode) -> BlockData:
        raise NotImplementedError


class FunctionCompressor(HMatrixCompressor):

    # Wraps fun(block_tree, leaf) -> BlockData

    def __init__(self,
            fun: Callable[[BlockClusterTree, BlockClusterTreeNode], BlockData]) -> None:

        self.fun = fun

    def compress_block(self,
            block_tree: BlockClusterTree,
            leaf: BlockClusterTreeNode) -> BlockData:

        return self.fun(block_tree, leaf)


class DenseCompressor(HMatrixCompressor):

    # Reference strategy: every leaf is evaluated densely, which gives the
    # exact operator. fun(row, col) returns kernel values for flattened index
    # arrays in original DOF ordering.

    def __init__(self,
            fun: Callable[[np.ndarray, np.ndarray], np.ndarray]) -> None:

        self.fun = fun

    def compress_block(self,
            block_tree: BlockClusterTree,
            leaf: BlockClusterTreeNode) -> BlockData:

        return BlockData.dense(self.evaluate(block_tree, leaf))

    def evaluate(self,
            block_tree: BlockClusterTree,
            leaf: BlockClusterTreeNode) -> np.ndarray:

        rows = block_tree.row_cluster_tree().original_dofs(leaf.row_node)
        cols = block_tree.column_cluster_tree().original_dofs(leaf.col_node)
        row_grid, col_grid = np.meshgrid(rows, cols, indexing = 'ij')
        return np.asarray(self.fun(row_grid.ravel(), col_grid.ravel())).reshape(row_grid.shape)
