"""
Cluster trees and block cluster trees.

Classes:
- ClusterTree: binary partition of one DOF index set
- BlockClusterTree: pairs of row/column clusters, admissible or dense
- StrongAdmissibility: default geometric admissibility condition
"""

from .clustertree import ClusterTree
from .admissibility import StrongAdmissibility, box_distance
from .blockclustertree import BlockClusterTree, BlockClusterTreeNode

__all__ = [
    "ClusterTree",
    "BlockClusterTree",
    "BlockClusterTreeNode",
    "StrongAdmissibility",
    "box_distance",
]
