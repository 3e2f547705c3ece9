"""
Numeric payload of one block cluster tree leaf.

A leaf holds either a dense matrix (near-field) or a low-rank factorization
``lhs @ rhs.T`` (far-field). Both variants are applied to vector blocks
through :func:`apply_block`, which never forms the full low-rank block.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from ..errors import DimensionMismatchError


class TransposeMode(enum.Enum):
    """Operator applied by ``apply``: B, B^T, conj(B) or B^H."""

    NOTRANS = 'N'
    TRANS = 'T'
    CONJ = 'C'
    CONJTRANS = 'H'

    @property
    def transposed(self) -> bool:
        return self in (TransposeMode.TRANS, TransposeMode.CONJTRANS)

    @property
    def conjugated(self) -> bool:
        return self in (TransposeMode.CONJ, TransposeMode.CONJTRANS)

    @classmethod
    def get(cls, trans: Union['TransposeMode', str, None]) -> 'TransposeMode':
        """Accept a member, its letter code ('N', 'T', 'C', 'H') or None."""
        if trans is None:
            return cls.NOTRANS
        if isinstance(trans, cls):
            return trans
        try:
            return cls(str(trans).upper())
        except ValueError:
            raise ValueError('[error] unknown transpose mode: <{}>'.format(trans))


class BlockKind(enum.Enum):

    DENSE = 'dense'
    LOW_RANK = 'lowrank'


@dataclass(frozen=True, eq=False)
class BlockData:
    """
    Dense or low-rank block.

    Use :meth:`dense` or :meth:`low_rank` rather than the constructor.

    Attributes
    ----------
    kind : BlockKind
        Which payload is set
    mat : ndarray, shape (m, n)
        Dense block, DENSE only
    lhs : ndarray, shape (m, k)
        Left factor U, LOW_RANK only
    rhs : ndarray, shape (n, k)
        Right factor V, LOW_RANK only; the block is U @ V.T
    """

    kind: BlockKind
    mat: Optional[np.ndarray] = None
    lhs: Optional[np.ndarray] = None
    rhs: Optional[np.ndarray] = None

    @classmethod
    def dense(cls, mat: np.ndarray) -> 'BlockData':

        mat = np.asarray(mat)
        if mat.ndim != 2:
            raise DimensionMismatchError('dimensions of dense block', 2, mat.ndim)
        return cls(BlockKind.DENSE, mat = mat)

    @classmethod
    def low_rank(cls,
            lhs: np.ndarray,
            rhs: np.ndarray) -> 'BlockData':

        lhs = np.asarray(lhs)
        rhs = np.asarray(rhs)
        if lhs.ndim == 1:
            lhs = lhs[:, np.newaxis]
        if rhs.ndim == 1:
            rhs = rhs[:, np.newaxis]
        if lhs.ndim != 2 or rhs.ndim != 2:
            raise DimensionMismatchError('dimensions of low-rank factors', (2, 2), (lhs.ndim, rhs.ndim))
        if lhs.shape[1] != rhs.shape[1]:
            raise DimensionMismatchError('rank of right factor', lhs.shape[1], rhs.shape[1])
        return cls(BlockKind.LOW_RANK, lhs = lhs, rhs = rhs)

    @property
    def shape(self) -> Tuple[int, int]:

        if self.kind is BlockKind.DENSE:
            return self.mat.shape
        return (self.lhs.shape[0], self.rhs.shape[0])

    @property
    def rows(self) -> int:

        return self.shape[0]

    @property
    def columns(self) -> int:

        return self.shape[1]

    @property
    def rank(self) -> int:

        # Full rank bound for dense blocks
        if self.kind is BlockKind.DENSE:
            return min(self.mat.shape)
        return self.lhs.shape[1]

    @property
    def dtype(self) -> np.dtype:

        if self.kind is BlockKind.DENSE:
            return self.mat.dtype
        return np.result_type(self.lhs, self.rhs)

    @property
    def num_elements(self) -> int:

        if self.kind is BlockKind.DENSE:
            return self.mat.size
        return self.lhs.size + self.rhs.size

    def to_dense(self) -> np.ndarray:

        if self.kind is BlockKind.DENSE:
            return self.mat.copy()
        return self.lhs @ self.rhs.T

    def apply(self,
            x: np.ndarray,
            y: np.ndarray,
            trans: TransposeMode = TransposeMode.NOTRANS,
            alpha: complex = 1.0,
            beta: complex = 0.0) -> np.ndarray:

        return apply_block(self, x, y, trans, alpha, beta)


def apply_block(data: BlockData,
        x: np.ndarray,
        y: np.ndarray,
        trans: TransposeMode = TransposeMode.NOTRANS,
        alpha: complex = 1.0,
        beta: complex = 0.0) -> np.ndarray:
    """
    y := alpha * op(B) @ x + beta * y, in place.

    Parameters
    ----------
    data : BlockData
        Block B
    x : ndarray, shape (k,) or (k, nrhs)
        Input; k is the column count of op(B)
    y : ndarray, shape (m,) or (m, nrhs)
        Output, overwritten; m is the row count of op(B). With beta == 0
        the previous contents are ignored.
    trans : TransposeMode
    alpha, beta : scalar

    Returns
    -------
    y : ndarray
    """
    trans = TransposeMode.get(trans)
    m, n = data.shape
    if trans.transposed:
        m, n = n, m

    if x.shape[0] != n:
        raise DimensionMismatchError('rows of block input', n, x.shape[0])
    if y.shape[0] != m:
        raise DimensionMismatchError('rows of block output', m, y.shape[0])
    if x.shape[1:] != y.shape[1:]:
        raise DimensionMismatchError('trailing shape of block output', x.shape[1:], y.shape[1:])

    if data.kind is BlockKind.DENSE:
        mat = data.mat
        if trans.transposed:
            mat = mat.T
        if trans.conjugated:
            mat = mat.conj()
        prod = mat @ x

    elif data.kind is BlockKind.LOW_RANK:
        # op(U V^T) applied without forming the block
        lhs, rhs = data.lhs, data.rhs
        if trans.transposed:
            lhs, rhs = rhs, lhs
        if trans.conjugated:
            lhs, rhs = lhs.conj(), rhs.conj()
        prod = lhs @ (rhs.T @ x)

    else:
        raise TypeError('[error] unknown block kind: <{}>'.format(data.kind))

    if beta == 0:
        y[...] = alpha * prod
    else:
        y *= beta
        y += alpha * prod
    return y
