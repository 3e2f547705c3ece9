import numpy as np
from typing import Optional, Tuple, Any, List, Sequence

from ..errors import (ClusterTreeError, DimensionMismatchError,
        InvalidPermutationIndexError)


class ClusterTree(object):

    # Binary cluster tree over one DOF index set.
    # Nodes are stored in flat arrays and referred to by integer handles,
    # node 0 is the root and -1 means "no son". Every node owns the half-open
    # range cind[k] = [start, end) of the permuted (H-matrix) ordering.
    # The geometric clustering itself is done by the caller; this class only
    # stores and checks the result.

    def __init__(self,
            perm: np.ndarray,
            cind: np.ndarray,
            son: np.ndarray,
            box: Optional[np.ndarray] = None):

        # perm: (n,) original DOF index for every H-matrix position
        # cind: (num_nodes, 2) half-open index ranges in H-matrix ordering
        # son:  (num_nodes, 2) son handles, -1 for leaves
        # box:  (num_nodes, 2, dim) lower/upper bounding box corners, optional

        perm = np.asarray(perm, dtype = np.int64).ravel()
        self.n = perm.shape[0]
        if self.n == 0:
            raise ClusterTreeError('[error] cluster tree needs at least one DOF')
        if not np.array_equal(np.sort(perm), np.arange(self.n, dtype = np.int64)):
            raise ClusterTreeError('[error] DOF permutation is not a bijection of 0..{}'.format(self.n - 1))

        self.cind = np.array(cind, dtype = np.int64).reshape(-1, 2)
        self.son = np.array(son, dtype = np.int64).reshape(-1, 2)
        if self.son.shape[0] != self.cind.shape[0]:
            raise ClusterTreeError('[error] son and cind arrays describe different node counts: {} != {}'.format(
                self.son.shape[0], self.cind.shape[0]))

        if box is None:
            self.box = None
        else:
            self.box = np.asarray(box, dtype = np.float64)
            if self.box.ndim != 3 or self.box.shape[:2] != (self.num_nodes, 2):
                raise ClusterTreeError('[error] bounding boxes must have shape (num_nodes, 2, dim), got {}'.format(
                    self.box.shape))

        # ind[:, 0] maps H-matrix position -> original DOF
        # ind[:, 1] maps original DOF -> H-matrix position
        self.ind = np.empty((self.n, 2), dtype = np.int64)
        self.ind[:, 0] = perm
        self.ind[perm, 1] = np.arange(self.n, dtype = np.int64)

        self.parent, self.level = self._link()
        self._leaves = self._collect_leaves()

    @classmethod
    def from_nested(cls,
            nested: Sequence[Any],
            pos: Optional[np.ndarray] = None) -> 'ClusterTree':

        # Build a tree from nested pairs whose leaves are lists of original
        # DOF indices, e.g. [[0, 1], [2, 3]]. With pos (n, dim) every node
        # gets the axis-aligned bounding box of its DOFs.
        nodes = []  # type: List[dict]
        nodes.append({'son1': -1, 'son2': -1, 'dofs': None})
        cls._split_nested(nodes, 0, nested)

        perm = []  # type: List[int]
        cind = np.empty((len(nodes), 2), dtype = np.int64)
        son = np.full((len(nodes), 2), -1, dtype = np.int64)
        cls._number_nested(nodes, 0, perm, cind)
        for i, node in enumerate(nodes):
            son[i, 0] = node['son1']
            son[i, 1] = node['son2']

        tree = cls(perm, cind, son)
        if pos is not None:
            tree.box = tree._bounding_boxes(pos)
        return tree

    @classmethod
    def single(cls, n: int) -> 'ClusterTree':

        # One-node tree in identity ordering
        return cls(np.arange(n, dtype = np.int64), [[0, n]], [[-1, -1]])

    def _bounding_boxes(self, pos: np.ndarray) -> np.ndarray:

        pos = np.asarray(pos, dtype = np.float64)
        if pos.ndim == 1:
            pos = pos[:, np.newaxis]
        if pos.shape[0] != self.n:
            raise DimensionMismatchError('number of DOF positions', self.n, pos.shape[0])

        box = np.empty((self.num_nodes, 2, pos.shape[1]), dtype = np.float64)
        for k in range(self.num_nodes):
            sub = pos[self.ind[self.cind[k, 0]:self.cind[k, 1], 0]]
            box[k, 0] = sub.min(axis = 0)
            box[k, 1] = sub.max(axis = 0)
        return box

    @staticmethod
    def _split_nested(nodes: List[dict],
            ic: int,
            item: Sequence[Any]) -> None:

        if isinstance(item, (int, np.integer)):
            raise ClusterTreeError('[error] cluster mixes DOF indices and sub-clusters')
        if len(item) == 0:
            raise ClusterTreeError('[error] empty cluster in nested tree description')

        if all(isinstance(x, (int, np.integer)) for x in item):
            nodes[ic]['dofs'] = [int(x) for x in item]
            return

        if len(item) != 2:
            raise ClusterTreeError('[error] inner cluster must have exactly 2 sons, got {}'.format(len(item)))

        siz = len(nodes)
        nodes[ic]['son1'] = siz
        nodes[ic]['son2'] = siz + 1
        nodes.append({'son1': -1, 'son2': -1, 'dofs': None})
        nodes.append({'son1': -1, 'son2': -1, 'dofs': None})

        ClusterTree._split_nested(nodes, siz, item[0])
        ClusterTree._split_nested(nodes, siz + 1, item[1])

    @staticmethod
    def _number_nested(nodes: List[dict],
            ic: int,
            perm: List[int],
            cind: np.ndarray) -> None:

        node = nodes[ic]
        cind[ic, 0] = len(perm)
        if node['dofs'] is not None:
            perm.extend(node['dofs'])
        else:
            ClusterTree._number_nested(nodes, node['son1'], perm, cind)
            ClusterTree._number_nested(nodes, node['son2'], perm, cind)
        cind[ic, 1] = len(perm)

    def _link(self) -> Tuple[np.ndarray, np.ndarray]:

        # Parent pointers and levels by walking down from the root; also checks
        # that son ranges split the parent range exactly.
        num_nodes = self.num_nodes
        if self.cind[0, 0] != 0 or self.cind[0, 1] != self.n:
            raise ClusterTreeError('[error] root range {} does not cover [0, {})'.format(
                tuple(self.cind[0]), self.n))

        parent = np.full(num_nodes, -1, dtype = np.int64)
        level = np.full(num_nodes, -1, dtype = np.int64)
        level[0] = 0
        stack = [0]
        while stack:
            k = stack.pop()
            start, end = self.cind[k]
            if start >= end:
                raise ClusterTreeError('[error] node {} has empty range [{}, {})'.format(k, start, end))

            s1, s2 = self.son[k]
            if s1 == -1 and s2 == -1:
                continue
            if s1 == -1 or s2 == -1:
                raise ClusterTreeError('[error] node {} must have 0 or 2 sons'.format(k))

            for s in (s1, s2):
                if s <= 0 or s >= num_nodes:
                    raise ClusterTreeError('[error] node {} has invalid son handle {}'.format(k, s))
                if level[s] != -1:
                    raise ClusterTreeError('[error] node {} is reachable twice'.format(s))
                parent[s] = k
                level[s] = level[k] + 1

            if (self.cind[s1, 0] != start or self.cind[s1, 1] != self.cind[s2, 0]
                    or self.cind[s2, 1] != end):
                raise ClusterTreeError('[error] sons of node {} do not partition [{}, {})'.format(k, start, end))

            stack.append(s2)
            stack.append(s1)

        if np.any(level == -1):
            orphans = np.nonzero(level == -1)[0]
            raise ClusterTreeError('[error] nodes {} are not reachable from the root'.format(orphans.tolist()))

        return parent, level

    def _collect_leaves(self) -> Tuple[int, ...]:

        # Depth-first, left to right: concatenated leaf ranges give [0, n)
        leaves = []
        stack = [0]
        while stack:
            k = stack.pop()
            if self.son[k, 0] == -1:
                leaves.append(k)
            else:
                stack.append(int(self.son[k, 1]))
                stack.append(int(self.son[k, 0]))
        return tuple(leaves)

    @property
    def num_nodes(self) -> int:

        return self.cind.shape[0]

    @property
    def depth(self) -> int:

        return int(self.level.max())

    def rows(self) -> int:

        return self.n

    def number_of_dofs(self) -> int:

        return self.n

    def map_original_dof_to_hmat_dof(self, i: int) -> int:

        i = int(i)
        if i < 0 or i >= self.n:
            raise InvalidPermutationIndexError(i, self.n, kind = 'original')
        return int(self.ind[i, 1])

    def map_hmat_dof_to_original_dof(self, k: int) -> int:

        k = int(k)
        if k < 0 or k >= self.n:
            raise InvalidPermutationIndexError(k, self.n, kind = 'H-matrix')
        return int(self.ind[k, 0])

    def leaf_nodes(self) -> Tuple[int, ...]:

        return self._leaves

    def _check_node(self, k: int) -> int:

        k = int(k)
        if k < 0 or k >= self.num_nodes:
            raise ClusterTreeError('[error] node handle {} out of range [0, {})'.format(k, self.num_nodes))
        return k

    def is_leaf(self, k: int) -> bool:

        k = self._check_node(k)
        return bool(self.son[k, 0] == -1)

    def sons(self, k: int) -> Tuple[int, ...]:

        # Returns no handles for leaves
        k = self._check_node(k)
        if self.son[k, 0] == -1:
            return ()
        return (int(self.son[k, 0]), int(self.son[k, 1]))

    def index_range(self, k: int) -> Tuple[int, int]:

        k = self._check_node(k)
        return (int(self.cind[k, 0]), int(self.cind[k, 1]))

    def cluster_size(self, k: int) -> int:

        k = self._check_node(k)
        return int(self.cind[k, 1] - self.cind[k, 0])

    def original_dofs(self, k: int) -> np.ndarray:

        start, end = self.index_range(k)
        return self.ind[start:end, 0].copy()

    def diameter(self, k: int) -> float:

        # Diagonal of the bounding box, 0 without geometry
        k = self._check_node(k)
        if self.box is None:
            return 0.0
        return float(np.linalg.norm(self.box[k, 1] - self.box[k, 0]))

    def part2cluster(self, v: np.ndarray) -> np.ndarray:

        # Reorders v from original ordering to H-matrix ordering
        # v[orig] -> result[hmat]
        v = np.asarray(v)
        if v.ndim == 0 or v.shape[0] != self.n:
            raise DimensionMismatchError('rows of array in original ordering', self.n,
                v.shape[0] if v.ndim > 0 else ())
        return v[self.ind[:, 0]]

    def cluster2part(self, v: np.ndarray) -> np.ndarray:

        # Reorders v from H-matrix ordering to original ordering
        # v[hmat] -> result[orig]
        v = np.asarray(v)
        if v.ndim == 0 or v.shape[0] != self.n:
            raise DimensionMismatchError('rows of array in H-matrix ordering', self.n,
                v.shape[0] if v.ndim > 0 else ())
        return v[self.ind[:, 1]]

    def __repr__(self) -> str:
        return 'ClusterTree(n={}, nodes={}, leaves={}, depth={})'.format(
            self.n, self.num_nodes, len(self._leaves), self.depth)
