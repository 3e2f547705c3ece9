import logging

import numpy as np
from typing import Optional, Tuple, Any, List, Callable, Dict, NamedTuple, Sequence

from ..errors import ClusterTreeError
from ..misc.options import gethmatoptions
from .admissibility import StrongAdmissibility
from .clustertree import ClusterTree


logger = logging.getLogger(__name__)


class BlockClusterTreeNode(NamedTuple):
    """Read-only view of one (row cluster, column cluster) block."""

    index: int
    row_node: int
    col_node: int
    row_range: Tuple[int, int]
    column_range: Tuple[int, int]
    admissible: bool
    is_leaf: bool

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.row_range[1] - self.row_range[0],
                self.column_range[1] - self.column_range[0])


class BlockClusterTree(object):

    # Pairs a row cluster tree with a column cluster tree. Block nodes are
    # stored by integer handle, block 0 is (row root, column root). A block is
    # a leaf when it is admissible (low-rank, far-field) or cannot be
    # subdivided further (dense, near-field). The leaves cover every DOF pair
    # exactly once.

    def __init__(self,
            row_tree: ClusterTree,
            col_tree: ClusterTree,
            blocks: Sequence[Tuple[int, int, bool]]):

        # blocks: leaf blocks as (row node, column node, admissible)
        self._row_tree = row_tree
        self._col_tree = col_tree

        blocks = [(int(i1), int(i2), bool(ad)) for i1, i2, ad in blocks]
        if len(blocks) == 0:
            raise ClusterTreeError('[error] block cluster tree needs at least one leaf block')
        for i1, i2, _ in blocks:
            row_tree._check_node(i1)
            col_tree._check_node(i2)

        if len(blocks) == 1 and blocks[0][:2] == (0, 0):
            self._init_arrays([blocks[0]], [()])
        else:
            # flat tree: inadmissible root with the given leaves as sons
            nodes = [(0, 0, False)] + blocks
            sons = [tuple(range(1, len(nodes)))] + [()] * len(blocks)
            self._init_arrays(nodes, sons)

        self._check_partition()

    @classmethod
    def build(cls,
            row_tree: ClusterTree,
            col_tree: Optional[ClusterTree] = None,
            admissible: Optional[Callable[[ClusterTree, int, ClusterTree, int], bool]] = None,
            op: Optional[Dict[str, Any]] = None,
            **kwargs: Any) -> 'BlockClusterTree':

        # Recursive subdivision starting at (root, root). admissible is called
        # as admissible(row_tree, i1, col_tree, i2) and defaults to
        # StrongAdmissibility(eta), eta taken from op and kwargs.
        if col_tree is None:
            col_tree = row_tree
        if admissible is None:
            eta = gethmatoptions(op, **kwargs)['eta']
            admissible = StrongAdmissibility(eta)

        nodes = []  # type: List[Tuple[int, int, bool]]
        sons = []  # type: List[Tuple[int, ...]]
        cls._blocktree(nodes, sons, row_tree, col_tree, 0, 0, admissible)

        obj = cls.__new__(cls)
        obj._row_tree = row_tree
        obj._col_tree = col_tree
        obj._init_arrays(nodes, sons)

        n_lr = int(np.count_nonzero(obj.admiss[list(obj._leaves)]))
        logger.debug('block cluster tree %dx%d: %d blocks, %d leaves (%d admissible)',
            obj.rows(), obj.columns(), obj.num_nodes, len(obj._leaves), n_lr)
        return obj

    @staticmethod
    def _blocktree(nodes: List[Tuple[int, int, bool]],
            sons: List[Tuple[int, ...]],
            row_tree: ClusterTree,
            col_tree: ClusterTree,
            i1: int,
            i2: int,
            admissible: Callable) -> int:

        ib = len(nodes)
        ad = bool(admissible(row_tree, i1, col_tree, i2))
        nodes.append((i1, i2, ad))
        sons.append(())

        if ad or (row_tree.is_leaf(i1) and col_tree.is_leaf(i2)):
            return ib

        # split every side that still has sons
        ind1 = row_tree.sons(i1) or (i1,)
        ind2 = col_tree.sons(i2) or (i2,)
        children = []
        for ii1 in ind1:
            for ii2 in ind2:
                children.append(BlockClusterTree._blocktree(
                    nodes, sons, row_tree, col_tree, ii1, ii2, admissible))
        sons[ib] = tuple(children)
        return ib

    def _init_arrays(self,
            nodes: List[Tuple[int, int, bool]],
            sons: List[Tuple[int, ...]]) -> None:

        self.row = np.array([nd[0] for nd in nodes], dtype = np.int64)
        self.col = np.array([nd[1] for nd in nodes], dtype = np.int64)
        self.admiss = np.array([nd[2] for nd in nodes], dtype = bool)
        self._sons = list(sons)

        # depth-first, left to right
        leaves = []
        stack = [0]
        while stack:
            k = stack.pop()
            if len(self._sons[k]) == 0:
                leaves.append(k)
            else:
                stack.extend(reversed(self._sons[k]))
        self._leaves = tuple(leaves)
        self._leaf_views = tuple(self.node(k) for k in leaves)

    def _check_partition(self) -> None:

        # Every (i, j) must be covered by exactly one leaf. Work on the grid
        # spanned by the distinct range boundaries instead of the full matrix.
        leaves = self._leaf_views
        rb = np.unique([0, self.rows()] + [b for nd in leaves for b in nd.row_range])
        cb = np.unique([0, self.columns()] + [b for nd in leaves for b in nd.column_range])

        count = np.zeros((len(rb), len(cb)), dtype = np.int64)
        for nd in leaves:
            r0, r1 = np.searchsorted(rb, nd.row_range)
            c0, c1 = np.searchsorted(cb, nd.column_range)
            count[r0, c0] += 1
            count[r0, c1] -= 1
            count[r1, c0] -= 1
            count[r1, c1] += 1
        count = np.cumsum(np.cumsum(count, axis = 0), axis = 1)[:-1, :-1]

        if np.any(count == 0):
            raise ClusterTreeError('[error] leaf blocks leave DOF pairs uncovered')
        if np.any(count > 1):
            raise ClusterTreeError('[error] leaf blocks overlap')

    @property
    def num_nodes(self) -> int:

        return self.row.shape[0]

    @property
    def num_leaves(self) -> int:

        return len(self._leaves)

    def rows(self) -> int:

        return self._row_tree.number_of_dofs()

    def columns(self) -> int:

        return self._col_tree.number_of_dofs()

    def row_cluster_tree(self) -> ClusterTree:

        return self._row_tree

    def column_cluster_tree(self) -> ClusterTree:

        return self._col_tree

    def leaf_nodes(self) -> Tuple[int, ...]:

        return self._leaves

    def leaves(self) -> Tuple[BlockClusterTreeNode, ...]:

        # Views in the same order as leaf_nodes()
        return self._leaf_views

    def sons(self, k: int) -> Tuple[int, ...]:

        return self._sons[self._check_block(k)]

    def _check_block(self, k: int) -> int:

        k = int(k)
        if k < 0 or k >= self.num_nodes:
            raise ClusterTreeError('[error] block handle {} out of range [0, {})'.format(k, self.num_nodes))
        return k

    def node(self, k: int) -> BlockClusterTreeNode:

        k = self._check_block(k)
        i1 = int(self.row[k])
        i2 = int(self.col[k])
        return BlockClusterTreeNode(
            index = k,
            row_node = i1,
            col_node = i2,
            row_range = self._row_tree.index_range(i1),
            column_range = self._col_tree.index_range(i2),
            admissible = bool(self.admiss[k]),
            is_leaf = len(self._sons[k]) == 0)

    def __repr__(self) -> str:
        return 'BlockClusterTree({}x{}, blocks={}, leaves={})'.format(
            self.rows(), self.columns(), self.num_nodes, self.num_leaves)
