import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy as np
import pytest

from hmat.matrix.hmatrix import HMatrix
from hmat.misc.plotting import DENSE_COLOR, LOWRANK_COLOR, plot_blocks
from hmat.tests.helpers import SVDCompressor, dense_matrix, green_kernel


@pytest.fixture
def figure():
    fig, ax = plt.subplots()
    yield ax
    plt.close(fig)


class TestPlotBlocks(object):

    def test_block_tree(self, figure, sphere_block_tree) -> None:

        ax = plot_blocks(sphere_block_tree, ax = figure)

        assert ax is figure
        assert len(ax.patches) == sphere_block_tree.num_leaves
        assert ax.get_xlim() == (0.0, 200.0)
        assert ax.get_ylim() == (200.0, 0.0)

        n_lr = sum(leaf.admissible for leaf in sphere_block_tree.leaves())
        greens = [p for p in ax.patches
            if matplotlib.colors.same_color(p.get_facecolor()[:3], LOWRANK_COLOR)]
        assert len(greens) == n_lr

    def test_initialized_hmatrix_annotates_ranks(self, figure, sphere_pos, sphere_block_tree) -> None:

        mat = dense_matrix(green_kernel(sphere_pos), 200, 200)
        hmat = HMatrix(sphere_block_tree, SVDCompressor(mat))

        plot_blocks(hmat, ax = figure)

        stat = hmat.statistics()
        assert len(figure.patches) == stat['leaves']
        assert len(figure.texts) == stat['lowrank']

        reds = [p for p in figure.patches
            if matplotlib.colors.same_color(p.get_facecolor()[:3], DENSE_COLOR)]
        assert len(reds) == stat['dense']

    def test_without_annotation(self, figure, sphere_block_tree) -> None:

        hmat = HMatrix(sphere_block_tree)
        plot_blocks(hmat, ax = figure, annotate = False, edgecolor = 'b')

        assert len(figure.patches) == sphere_block_tree.num_leaves
        assert len(figure.texts) == 0

    def test_unsupported(self, figure) -> None:

        with pytest.raises(TypeError):
            plot_blocks(np.eye(3), ax = figure)
