import numpy as np
import pytest

from hmat.errors import DimensionMismatchError
from hmat.matrix.blockdata import BlockData, BlockKind, TransposeMode, apply_block


def _op(mat: np.ndarray, trans: TransposeMode) -> np.ndarray:

    if trans.transposed:
        mat = mat.T
    if trans.conjugated:
        mat = mat.conj()
    return mat


@pytest.fixture
def complex_blocks():
    """Dense and low-rank complex 5x3 blocks"""
    rng = np.random.RandomState(7)
    lhs = rng.randn(5, 2) + 1j * rng.randn(5, 2)
    rhs = rng.randn(3, 2) + 1j * rng.randn(3, 2)
    mat = rng.randn(5, 3) + 1j * rng.randn(5, 3)
    return BlockData.dense(mat), BlockData.low_rank(lhs, rhs)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestBlockDataConstruction(object):

    def test_dense(self) -> None:

        block = BlockData.dense(np.arange(6.0).reshape(2, 3))

        assert block.kind is BlockKind.DENSE
        assert block.shape == (2, 3)
        assert block.rows == 2
        assert block.columns == 3
        assert block.rank == 2
        assert block.num_elements == 6
        assert block.dtype == np.float64

    def test_low_rank(self) -> None:

        block = BlockData.low_rank(np.ones((4, 2)), np.ones((6, 2)))

        assert block.kind is BlockKind.LOW_RANK
        assert block.shape == (4, 6)
        assert block.rank == 2
        assert block.num_elements == 20
        np.testing.assert_array_equal(block.to_dense(), 2.0 * np.ones((4, 6)))

    def test_low_rank_vectors_promoted(self) -> None:

        block = BlockData.low_rank(np.ones(4), np.ones(3))

        assert block.lhs.shape == (4, 1)
        assert block.rhs.shape == (3, 1)
        assert block.rank == 1

    def test_low_rank_dtype(self) -> None:

        block = BlockData.low_rank(np.ones((2, 1)), 1j * np.ones((2, 1)))
        assert block.dtype == np.complex128

    def test_dense_wrong_dimensions(self) -> None:

        with pytest.raises(DimensionMismatchError):
            BlockData.dense(np.ones(3))

    def test_low_rank_rank_mismatch(self) -> None:

        with pytest.raises(DimensionMismatchError):
            BlockData.low_rank(np.ones((4, 2)), np.ones((3, 3)))

    def test_to_dense_copies(self) -> None:

        mat = np.eye(2)
        block = BlockData.dense(mat)
        out = block.to_dense()
        out[0, 0] = 5.0
        assert mat[0, 0] == 1.0


# ---------------------------------------------------------------------------
# Transpose modes
# ---------------------------------------------------------------------------

class TestTransposeMode(object):

    @pytest.mark.parametrize('code, mode', [
        ('N', TransposeMode.NOTRANS),
        ('t', TransposeMode.TRANS),
        ('C', TransposeMode.CONJ),
        ('H', TransposeMode.CONJTRANS),
        (None, TransposeMode.NOTRANS),
        (TransposeMode.TRANS, TransposeMode.TRANS),
    ])
    def test_get(self, code, mode: TransposeMode) -> None:

        assert TransposeMode.get(code) is mode

    def test_flags(self) -> None:

        assert not TransposeMode.NOTRANS.transposed
        assert not TransposeMode.NOTRANS.conjugated
        assert TransposeMode.TRANS.transposed
        assert not TransposeMode.TRANS.conjugated
        assert not TransposeMode.CONJ.transposed
        assert TransposeMode.CONJ.conjugated
        assert TransposeMode.CONJTRANS.transposed
        assert TransposeMode.CONJTRANS.conjugated

    def test_unknown(self) -> None:

        with pytest.raises(ValueError):
            TransposeMode.get('X')


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

class TestApplyBlock(object):

    @pytest.mark.parametrize('trans', list(TransposeMode))
    @pytest.mark.parametrize('which', [0, 1])
    def test_matches_dense(self, complex_blocks, which: int, trans: TransposeMode) -> None:

        block = complex_blocks[which]
        ref = _op(block.to_dense(), trans)

        rng = np.random.RandomState(11)
        x = rng.randn(ref.shape[1]) + 1j * rng.randn(ref.shape[1])
        y = np.zeros(ref.shape[0], dtype = np.complex128)

        apply_block(block, x, y, trans)
        np.testing.assert_allclose(y, ref @ x, rtol = 1e-12)

    @pytest.mark.parametrize('trans', list(TransposeMode))
    def test_multiple_right_hand_sides(self, complex_blocks, trans: TransposeMode) -> None:

        block = complex_blocks[1]
        ref = _op(block.to_dense(), trans)

        x = np.arange(ref.shape[1] * 4, dtype = np.float64).reshape(-1, 4)
        y = np.zeros((ref.shape[0], 4), dtype = np.complex128)

        block.apply(x, y, trans)
        np.testing.assert_allclose(y, ref @ x, rtol = 1e-12)

    def test_alpha_beta(self) -> None:

        block = BlockData.dense(np.array([[1.0, 2.0], [3.0, 4.0]]))
        x = np.array([1.0, 1.0])
        y = np.array([10.0, 20.0])

        apply_block(block, x, y, TransposeMode.NOTRANS, alpha = 2.0, beta = 0.5)
        np.testing.assert_allclose(y, [2.0 * 3.0 + 5.0, 2.0 * 7.0 + 10.0])

    def test_beta_zero_ignores_output(self) -> None:

        block = BlockData.low_rank(np.ones(2), np.ones(2))
        y = np.array([np.nan, np.inf])

        apply_block(block, np.array([1.0, 2.0]), y)
        np.testing.assert_array_equal(y, [3.0, 3.0])

    def test_output_is_returned_in_place(self) -> None:

        block = BlockData.dense(np.eye(3))
        y = np.zeros(3)
        out = apply_block(block, np.ones(3), y)
        assert out is y

    def test_input_rows(self) -> None:

        block = BlockData.dense(np.ones((2, 3)))
        with pytest.raises(DimensionMismatchError):
            apply_block(block, np.ones(2), np.zeros(2))

        # transposed: input has 2 rows, output 3
        with pytest.raises(DimensionMismatchError):
            apply_block(block, np.ones(3), np.zeros(2), TransposeMode.TRANS)
        apply_block(block, np.ones(2), np.zeros(3), TransposeMode.TRANS)

    def test_output_rows(self) -> None:

        block = BlockData.low_rank(np.ones((2, 1)), np.ones((3, 1)))
        with pytest.raises(DimensionMismatchError):
            apply_block(block, np.ones(3), np.zeros(3))

    def test_trailing_shape(self) -> None:

        block = BlockData.dense(np.eye(2))
        with pytest.raises(DimensionMismatchError):
            apply_block(block, np.ones((2, 3)), np.zeros((2, 2)))
