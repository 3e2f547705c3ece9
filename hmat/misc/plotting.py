"""
Plotting utilities for H-matrices.
"""

from typing import Any, Optional, Union

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from ..matrix.blockdata import BlockKind
from ..matrix.hmatrix import HMatrix
from ..tree.blockclustertree import BlockClusterTree


DENSE_COLOR = '#d62728'
LOWRANK_COLOR = '#2ca02c'


def plot_blocks(obj: Union[HMatrix, BlockClusterTree],
        ax: Optional[Any] = None,
        annotate: bool = True,
        **kwargs: Any) -> Any:
    """
    Plot the block partition of an H-matrix in H-matrix ordering.

    Dense (near-field) leaves are drawn red, low-rank (far-field) leaves
    green. Rows run from top to bottom as in a matrix.

    Parameters
    ----------
    obj : HMatrix or BlockClusterTree
        For an uninitialized H-matrix or a bare block cluster tree the
        admissibility flag decides the color
    ax : matplotlib Axes, optional
        Axes to draw into (default: current axes)
    annotate : bool
        Print the rank inside low-rank leaves of an initialized H-matrix
    **kwargs
        edgecolor, linewidth, alpha - passed to the block rectangles

    Returns
    -------
    ax : matplotlib Axes
    """
    if isinstance(obj, HMatrix):
        block_tree = obj.block_tree
        data = [obj.block_data(p) for p in range(block_tree.num_leaves)] if obj.is_initialized() else None
    elif isinstance(obj, BlockClusterTree):
        block_tree = obj
        data = None
    else:
        raise TypeError('[error] cannot plot blocks of {}'.format(type(obj).__name__))

    if ax is None:
        ax = plt.gca()

    edgecolor = kwargs.get('edgecolor', 'k')
    linewidth = kwargs.get('linewidth', 0.5)
    alpha = kwargs.get('alpha', 0.6)

    for p, leaf in enumerate(block_tree.leaves()):
        r0, r1 = leaf.row_range
        c0, c1 = leaf.column_range

        if data is not None:
            lowrank = data[p].kind is BlockKind.LOW_RANK
        else:
            lowrank = leaf.admissible

        ax.add_patch(Rectangle((c0, r0), c1 - c0, r1 - r0,
            facecolor = LOWRANK_COLOR if lowrank else DENSE_COLOR,
            edgecolor = edgecolor, linewidth = linewidth, alpha = alpha))

        if annotate and lowrank and data is not None:
            ax.text(0.5 * (c0 + c1), 0.5 * (r0 + r1), str(data[p].rank),
                ha = 'center', va = 'center', fontsize = 'x-small')

    ax.set_xlim(0, block_tree.columns())
    ax.set_ylim(block_tree.rows(), 0)
    ax.set_aspect('equal')
    return ax
