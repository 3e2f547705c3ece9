"""
Geometric admissibility conditions for block cluster trees.

A block (row cluster, column cluster) is admissible when the two clusters
are far enough apart, relative to their size, for the interaction to be
approximated by a low-rank factorization.
"""

import numpy as np

from .clustertree import ClusterTree


def box_distance(box1: np.ndarray, box2: np.ndarray) -> float:
    """
    Euclidean distance between two axis-aligned boxes.

    Parameters
    ----------
    box1, box2 : ndarray, shape (2, dim)
        Lower and upper corners

    Returns
    -------
    dist : float
        Zero if the boxes touch or overlap
    """
    gap = np.maximum(0.0, np.maximum(box1[0] - box2[1], box2[0] - box1[1]))
    return float(np.linalg.norm(gap))


class StrongAdmissibility(object):

    # min(diam(row), diam(col)) <= eta * dist(row, col), with dist > 0.
    # Clusters without bounding boxes are never admissible.

    def __init__(self, eta: float = 2.0) -> None:

        if eta <= 0:
            raise ValueError('[error] admissibility parameter eta must be positive, got {}'.format(eta))
        self.eta = eta

    def __call__(self,
            row_tree: ClusterTree,
            i1: int,
            col_tree: ClusterTree,
            i2: int) -> bool:

        if row_tree.box is None or col_tree.box is None:
            return False

        dist = box_distance(row_tree.box[i1], col_tree.box[i2])
        if dist <= 0.0:
            return False

        diam = min(row_tree.diameter(i1), col_tree.diameter(i2))
        return diam <= self.eta * dist

    def __repr__(self) -> str:
        return 'StrongAdmissibility(eta={})'.format(self.eta)
