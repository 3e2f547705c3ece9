import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from typing import Optional, Tuple, Any, List, Callable, Dict, Sequence, Union
from scipy.sparse.linalg import LinearOperator

from ..errors import DimensionMismatchError, UninitializedAccessError
from ..misc.options import gethmatoptions
from ..tree.blockclustertree import BlockClusterTree, BlockClusterTreeNode
from ..tree.clustertree import ClusterTree
from .blockdata import BlockData, BlockKind, TransposeMode, apply_block
from .compressor import DenseCompressor, HMatrixCompressor


class HMatrix(object):

    # Hierarchical matrix on a block cluster tree.
    # Holds one BlockData per leaf, stored in a list indexed by the leaf's
    # position in block_tree.leaf_nodes(). The list is either empty
    # (uninitialized) or complete, never partially filled.
    # The block cluster tree is read-only and may be shared between several
    # H-matrices.

    def __init__(self,
            block_tree: BlockClusterTree,
            compressor: Optional[HMatrixCompressor] = None,
            op: Optional[Dict[str, Any]] = None,
            logger: Optional[logging.Logger] = None,
            **kwargs: Any):

        # compressor: if given, initialize right away
        # logger: sink for progress records, defaults to the module logger
        # op, kwargs: max_workers, output (see hmatoptions), kwargs win
        op = gethmatoptions(op, **kwargs)

        self.block_tree = block_tree
        self.max_workers = max(1, int(op['max_workers']))
        self.output = op['output']
        self.logger = logger or logging.getLogger(__name__)

        self._data = []  # type: List[BlockData]
        self._dtype = None

        if compressor is not None:
            self.initialize(compressor)

    @classmethod
    def from_func(cls,
            block_tree: BlockClusterTree,
            fun: Callable[[np.ndarray, np.ndarray], np.ndarray],
            **kwargs: Any) -> 'HMatrix':

        # All leaves dense, fun(row, col) in original DOF ordering
        return cls(block_tree, DenseCompressor(fun), **kwargs)

    def rows(self) -> int:

        return self.block_tree.rows()

    def columns(self) -> int:

        return self.block_tree.columns()

    def block_cluster_tree(self) -> BlockClusterTree:

        return self.block_tree

    @property
    def shape(self) -> Tuple[int, int]:

        return (self.rows(), self.columns())

    @property
    def dtype(self) -> np.dtype:

        self._require('query dtype')
        return self._dtype

    def is_initialized(self) -> bool:

        return len(self._data) > 0

    def _require(self, operation: str) -> None:

        if not self.is_initialized():
            raise UninitializedAccessError(operation)

    def initialize(self, compressor: HMatrixCompressor) -> 'HMatrix':

        # Compress every leaf. Any failure leaves the matrix uninitialized.
        self.reset()

        block_tree = self.block_tree
        leaves = block_tree.leaves()

        def compress(leaf: BlockClusterTreeNode) -> BlockData:
            return compressor.compress_block(block_tree, leaf)

        if self.max_workers > 1 and len(leaves) > 1:
            with ThreadPoolExecutor(max_workers = self.max_workers) as pool:
                data = list(pool.map(compress, leaves))
        else:
            data = [compress(leaf) for leaf in leaves]

        for leaf, block in zip(leaves, data):
            self._check_block_data(leaf, block)

        self._data = data
        self._dtype = np.result_type(*[block.dtype for block in data])

        stat = self.statistics()
        self.logger.log(logging.INFO if self.output else logging.DEBUG,
            'H-matrix %dx%d initialized: %d dense, %d low-rank leaves, max rank %d, compression %.4f',
            self.rows(), self.columns(), stat['dense'], stat['lowrank'],
            stat['max_rank'], stat['compression'])
        return self

    @staticmethod
    def _check_block_data(leaf: BlockClusterTreeNode, block: BlockData) -> None:

        if not isinstance(block, BlockData):
            raise TypeError('[error] compressor returned {} for leaf {}, expected BlockData'.format(
                type(block).__name__, leaf.index))
        if tuple(block.shape) != leaf.shape:
            raise DimensionMismatchError('shape of block data for leaf {}'.format(leaf.index),
                leaf.shape, tuple(block.shape))

    def reset(self) -> None:

        if self._data:
            self.logger.debug('H-matrix %dx%d reset', self.rows(), self.columns())
        self._data = []
        self._dtype = None

    def block_data(self, p: int) -> BlockData:

        # Data of the p-th leaf in leaf_nodes() order
        self._require('access block data')
        return self._data[p]

    def _tree(self, side: str) -> ClusterTree:

        if side == 'row':
            return self.block_tree.row_cluster_tree()
        elif side == 'col':
            return self.block_tree.column_cluster_tree()
        else:
            raise ValueError('[error] side must be <row> or <col>, got <{}>'.format(side))

    def permute_to_hmat_dofs(self,
            mat: np.ndarray,
            side: str = 'row') -> np.ndarray:

        # mat[orig] -> result[hmat], using the row or column cluster tree
        return self._tree(side).part2cluster(mat)

    def permute_to_original_dofs(self,
            mat: np.ndarray,
            side: str = 'row') -> np.ndarray:

        # mat[hmat] -> result[orig]
        return self._tree(side).cluster2part(mat)

    def apply(self,
            x: np.ndarray,
            y: np.ndarray,
            trans: Union[TransposeMode, str] = TransposeMode.NOTRANS,
            alpha: complex = 1.0,
            beta: complex = 0.0) -> np.ndarray:

        # y := alpha * op(A) @ x + beta * y, in place, x and y in original
        # DOF ordering. op(A) maps the column space to the row space for
        # NOTRANS/CONJ and the other way round for TRANS/CONJTRANS; the
        # output is permuted back with the tree of its own side.
        self._require('apply')
        trans = TransposeMode.get(trans)

        x = np.asarray(x)
        if not isinstance(y, np.ndarray):
            raise TypeError('[error] output of apply must be a numpy array, got {}'.format(type(y).__name__))

        in_side, out_side = ('row', 'col') if trans.transposed else ('col', 'row')
        in_tree = self._tree(in_side)
        out_tree = self._tree(out_side)

        if x.ndim not in (1, 2):
            raise DimensionMismatchError('dimensions of input', (1, 2), x.ndim)
        if y.ndim != x.ndim:
            raise DimensionMismatchError('dimensions of output', x.ndim, y.ndim)
        if x.shape[0] != in_tree.n:
            raise DimensionMismatchError('rows of input', in_tree.n, x.shape[0])
        if y.shape[0] != out_tree.n:
            raise DimensionMismatchError('rows of output', out_tree.n, y.shape[0])
        if x.shape[1:] != y.shape[1:]:
            raise DimensionMismatchError('columns of output', x.shape[1:], y.shape[1:])

        dtype = np.result_type(x, self._dtype, alpha, beta)
        if not np.can_cast(dtype, y.dtype, casting = 'same_kind'):
            raise TypeError('[error] output dtype {} cannot hold result of dtype {}'.format(y.dtype, dtype))

        x_perm = in_tree.part2cluster(x)
        acc = self._accumulate(x_perm, (out_tree.n,) + x.shape[1:], dtype, trans, alpha)
        result = out_tree.cluster2part(acc)

        if beta == 0:
            y[...] = result
        else:
            y *= beta
            y += result

        self.logger.debug('H-matrix apply: trans=%s, nrhs=%d', trans.value,
            1 if x.ndim == 1 else x.shape[1])
        return y

    def _accumulate(self,
            x_perm: np.ndarray,
            shape: Tuple[int, ...],
            dtype: np.dtype,
            trans: TransposeMode,
            alpha: complex) -> np.ndarray:

        # Leaves sharing an output range add into the same rows. Serially they
        # accumulate into one buffer; in parallel every worker owns a private
        # buffer and the buffers are summed at the end.
        leaves = self.block_tree.leaves()
        data = self._data

        def work(positions: Sequence[int]) -> np.ndarray:
            buf = np.zeros(shape, dtype = dtype)
            for p in positions:
                leaf = leaves[p]
                if trans.transposed:
                    in_rng, out_rng = leaf.row_range, leaf.column_range
                else:
                    in_rng, out_rng = leaf.column_range, leaf.row_range
                apply_block(data[p], x_perm[in_rng[0]:in_rng[1]], buf[out_rng[0]:out_rng[1]],
                    trans, alpha, 1.0)
            return buf

        nworkers = min(self.max_workers, len(leaves))
        if nworkers <= 1:
            return work(range(len(leaves)))

        chunks = [range(i, len(leaves), nworkers) for i in range(nworkers)]
        with ThreadPoolExecutor(max_workers = nworkers) as pool:
            bufs = list(pool.map(work, chunks))

        acc = bufs[0]
        for buf in bufs[1:]:
            acc += buf
        return acc

    def dot(self,
            x: np.ndarray,
            trans: Union[TransposeMode, str] = TransposeMode.NOTRANS) -> np.ndarray:

        # op(A) @ x into a freshly allocated array
        self._require('apply')
        trans = TransposeMode.get(trans)
        x = np.asarray(x)
        nout = self.columns() if trans.transposed else self.rows()
        y = np.zeros((nout,) + x.shape[1:], dtype = np.result_type(x, self._dtype))
        return self.apply(x, y, trans, 1.0, 0.0)

    def __matmul__(self, other: Any) -> Any:

        if isinstance(other, np.ndarray):
            return self.dot(other)
        raise TypeError('[error] Unsupported type for H-matrix multiplication: {}'.format(
            type(other).__name__))

    def full(self) -> np.ndarray:

        # Dense operator in original DOF ordering
        self._require('assemble full matrix')
        mat = np.zeros(self.shape, dtype = self._dtype)
        for leaf, block in zip(self.block_tree.leaves(), self._data):
            r0, r1 = leaf.row_range
            c0, c1 = leaf.column_range
            mat[r0:r1, c0:c1] = block.to_dense()

        # mat_orig[i, j] = mat_hmat[row position of i, column position of j]
        row_tree = self._tree('row')
        col_tree = self._tree('col')
        return mat[np.ix_(row_tree.ind[:, 1], col_tree.ind[:, 1])]

    def diag(self) -> np.ndarray:

        # Diagonal in original DOF ordering, square operators only
        self._require('extract diagonal')
        if self.rows() != self.columns():
            raise DimensionMismatchError('columns of square H-matrix', self.rows(), self.columns())

        row_tree = self._tree('row')
        col_tree = self._tree('col')
        d = np.zeros(self.rows(), dtype = self._dtype)

        for leaf, block in zip(self.block_tree.leaves(), self._data):
            r0, r1 = leaf.row_range
            c0, c1 = leaf.column_range
            dofs = row_tree.original_dofs(leaf.row_node)
            cpos = col_tree.ind[dofs, 1]
            mask = (cpos >= c0) & (cpos < c1)
            if not np.any(mask):
                continue
            dofs = dofs[mask]
            lr = row_tree.ind[dofs, 1] - r0
            lc = cpos[mask] - c0
            if block.kind is BlockKind.DENSE:
                d[dofs] = block.mat[lr, lc]
            else:
                d[dofs] = np.sum(block.lhs[lr] * block.rhs[lc], axis = 1)
        return d

    def compression(self) -> float:

        # Ratio of stored elements to full matrix elements
        self._require('compute compression')
        total = self.rows() * self.columns()
        return sum(block.num_elements for block in self._data) / float(total)

    def statistics(self) -> Dict[str, Any]:

        self._require('compute statistics')
        n_lr = 0
        max_rank = 0
        for block in self._data:
            if block.kind is BlockKind.LOW_RANK:
                n_lr += 1
                max_rank = max(max_rank, block.rank)
        return {
            'leaves': len(self._data),
            'dense': len(self._data) - n_lr,
            'lowrank': n_lr,
            'max_rank': max_rank,
            'elements': sum(block.num_elements for block in self._data),
            'compression': self.compression(),
        }

    def as_linear_operator(self,
            trans: Union[TransposeMode, str] = TransposeMode.NOTRANS) -> LinearOperator:

        # scipy operator for op(A); rmatvec applies the adjoint of op(A)
        self._require('build linear operator')
        trans = TransposeMode.get(trans)
        adjoint = {
            TransposeMode.NOTRANS: TransposeMode.CONJTRANS,
            TransposeMode.TRANS: TransposeMode.CONJ,
            TransposeMode.CONJ: TransposeMode.TRANS,
            TransposeMode.CONJTRANS: TransposeMode.NOTRANS,
        }[trans]

        shape = (self.shape[1], self.shape[0]) if trans.transposed else self.shape
        return LinearOperator(shape,
            matvec = lambda v: self.dot(v, trans),
            rmatvec = lambda v: self.dot(v, adjoint),
            matmat = lambda v: self.dot(v, trans),
            rmatmat = lambda v: self.dot(v, adjoint),
            dtype = self._dtype)

    def __repr__(self) -> str:
        state = 'initialized' if self.is_initialized() else 'uninitialized'
        return 'HMatrix({}x{}, leaves={}, {})'.format(
            self.rows(), self.columns(), self.block_tree.num_leaves, state)
