"""
Pytest configuration for hmat tests
"""

import numpy as np
import pytest

from hmat.tree.clustertree import ClusterTree
from hmat.tree.blockclustertree import BlockClusterTree
from hmat.tests.helpers import bisection_nested, sphere_points


@pytest.fixture
def rtol():
    """Relative tolerance for numerical comparisons"""
    return 1e-10


@pytest.fixture
def atol():
    """Absolute tolerance for numerical comparisons"""
    return 1e-12


@pytest.fixture
def sphere_pos():
    """200 random points on a sphere of radius 10"""
    return sphere_points(200)


@pytest.fixture
def sphere_tree(sphere_pos):
    """Cluster tree over the sphere points with leaf size 16"""
    return ClusterTree.from_nested(bisection_nested(sphere_pos, cleaf = 16), pos = sphere_pos)


@pytest.fixture
def sphere_block_tree(sphere_tree):
    """Block cluster tree with eta = 2 on the sphere tree"""
    return BlockClusterTree.build(sphere_tree, eta = 2.0)
