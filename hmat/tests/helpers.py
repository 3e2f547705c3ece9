"""
Shared geometry, kernels and a reference compression strategy for tests.
"""

import numpy as np

from hmat.matrix.blockdata import BlockData
from hmat.matrix.compressor import HMatrixCompressor


def bisection_nested(pos: np.ndarray,
        cleaf: int = 8,
        ind: np.ndarray = None) -> list:

    # Nested cluster description by recursive bisection along the longest
    # bounding box axis, input for ClusterTree.from_nested
    pos = np.asarray(pos, dtype = np.float64)
    if pos.ndim == 1:
        pos = pos[:, np.newaxis]
    if ind is None:
        ind = np.arange(pos.shape[0])
    if len(ind) <= cleaf:
        return [int(i) for i in ind]

    sub = pos[ind]
    k = np.argmax(sub.max(axis = 0) - sub.min(axis = 0))
    order = ind[np.argsort(sub[:, k], kind = 'stable')]
    half = len(order) // 2
    return [bisection_nested(pos, cleaf, order[:half]),
            bisection_nested(pos, cleaf, order[half:])]


def sphere_points(n: int,
        radius: float = 10.0,
        seed: int = 42) -> np.ndarray:

    rng = np.random.RandomState(seed)
    phi = rng.uniform(0, 2 * np.pi, n)
    theta = np.arccos(rng.uniform(-1, 1, n))

    pos = np.empty((n, 3), dtype = np.float64)
    pos[:, 0] = radius * np.sin(theta) * np.cos(phi)
    pos[:, 1] = radius * np.sin(theta) * np.sin(phi)
    pos[:, 2] = radius * np.cos(theta)
    return pos


def green_kernel(pos_row: np.ndarray,
        pos_col: np.ndarray = None,
        diag: float = 1.0) -> callable:

    # 1/(4 pi r) kernel on index arrays, diag where points coincide
    if pos_col is None:
        pos_col = pos_row

    def fun(row: np.ndarray, col: np.ndarray) -> np.ndarray:
        dist = np.linalg.norm(pos_row[row] - pos_col[col], axis = 1)
        vals = np.empty(dist.shape, dtype = np.float64)
        near = dist < 1e-12
        vals[near] = diag
        vals[~near] = 1.0 / (4.0 * np.pi * dist[~near])
        return vals

    return fun


def dense_matrix(fun: callable, m: int, n: int) -> np.ndarray:

    row_grid, col_grid = np.meshgrid(np.arange(m), np.arange(n), indexing = 'ij')
    return fun(row_grid.ravel(), col_grid.ravel()).reshape(m, n)


class SVDCompressor(HMatrixCompressor):

    # Dense sub-blocks of a reference matrix; admissible leaves are
    # truncated by SVD at relative tolerance htol.

    def __init__(self,
            mat: np.ndarray,
            htol: float = 1e-12) -> None:

        self.mat = mat
        self.htol = htol
        self.calls = 0

    def compress_block(self, block_tree, leaf):

        self.calls += 1
        rows = block_tree.row_cluster_tree().original_dofs(leaf.row_node)
        cols = block_tree.column_cluster_tree().original_dofs(leaf.col_node)
        sub = self.mat[np.ix_(rows, cols)]
        if not leaf.admissible:
            return BlockData.dense(sub)

        u, s, vt = np.linalg.svd(sub, full_matrices = False)
        if s[0] > 0:
            k = max(1, int(np.sum(s > self.htol * s[0])))
        else:
            k = 1
        return BlockData.low_rank(u[:, :k] * s[:k], vt[:k].T)
