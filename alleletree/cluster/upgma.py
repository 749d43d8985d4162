"""UPGMA clustering of a distance matrix into a Newick tree.

The closest pair of clusters is merged repeatedly. Distances from the merged
cluster are the plain mean of the two old distances, and node heights are
half the merge distance, optionally capped at ``max_height / 2``.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
from rich.console import Console

from alleletree.core.errors import ProfileError

console = Console(stderr=True)

BRANCH_FORMAT = '{:.5f}'


@dataclass(frozen=True)
class ClusterNode:
    """A leaf (no children, height 0) or a merge of two subtrees.

    ``newick`` holds the node's Newick fragment without a trailing ';'.
    ``children`` pairs each child with its branch length.
    """

    newick: str
    height: float = 0.0
    children: Tuple[Tuple['ClusterNode', float], ...] = field(default=(), repr=False)

    @property
    def is_leaf(self):
        return not self.children

    @classmethod
    def leaf(cls, name):
        return cls(newick=name)

    @classmethod
    def merge(cls, left, right, height):
        left_len = height - left.height
        right_len = height - right.height
        newick = '({}:{},{}:{})'.format(
            left.newick, BRANCH_FORMAT.format(left_len),
            right.newick, BRANCH_FORMAT.format(right_len),
        )
        return cls(newick=newick, height=height,
                   children=((left, left_len), (right, right_len)))

    def iter_nodes(self):
        """Yield every node of the subtree, parents before children."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(child for child, _ in reversed(node.children))


def check_distance_matrix(distmat, labels):
    """Validate a distance matrix against its labels and return it as float64.

    Raises:
        ProfileError: If there are no samples.
        ValueError: If the matrix is not square, does not match the labels,
            or is not a symmetric, finite, non-negative matrix.
    """
    distmat = np.asarray(distmat, dtype=np.float64)
    if len(labels) == 0:
        raise ProfileError('Cannot build a tree from zero samples')
    if distmat.ndim != 2 or distmat.shape[0] != distmat.shape[1]:
        raise ValueError(
            f"Provided distance matrix must have an equal number of rows and columns. "
            f"The one provided has shape {distmat.shape}"
        )
    if distmat.shape[0] != len(labels):
        raise ValueError(
            f"Provided distance matrix does not have one row and column per sample. You provided a "
            f"{distmat.shape[0]}X{distmat.shape[1]} distance matrix and {len(labels)} samples"
        )
    if not np.all(np.isfinite(distmat)):
        raise ValueError('Distance matrix contains NaN or infinite values')
    if np.any(distmat < 0):
        raise ValueError('Distance matrix contains negative distances')
    if not np.array_equal(distmat, distmat.T):
        raise ValueError('Distance matrix is not symmetric')
    return distmat


def closest_pair(distmat):
    """Return (i, j), i < j, of the smallest off-diagonal distance.

    Ties resolve to the first pair in row-major order of the upper triangle.
    """
    rows, cols = np.triu_indices(distmat.shape[0], k=1)
    k = int(np.argmin(distmat[rows, cols]))
    return int(rows[k]), int(cols[k])


def merge_rows(distmat, i, j):
    """Average rows/columns i and j into row i and drop row/column j."""
    merged = (distmat[i] + distmat[j]) / 2
    updated = distmat.copy()
    updated[i, :] = merged
    updated[:, i] = merged
    updated[i, i] = 0.0
    updated = np.delete(updated, j, axis=0)
    return np.delete(updated, j, axis=1)


def upgma(distmat, labels, max_height=0):
    """Cluster samples with UPGMA.

    Parameters:
        distmat: Symmetric distance matrix (n_samples x n_samples)
        labels: Sample names, one per row
        max_height: Cap on merge distances before halving into node heights.
            0 leaves heights uncapped.

    Returns:
        ClusterNode: Root of the tree. ``root.newick + ';'`` is the tree text.
    """
    distmat = check_distance_matrix(distmat, labels)
    nodes: List[ClusterNode] = [ClusterNode.leaf(str(label)) for label in labels]

    while len(nodes) > 1:
        i, j = closest_pair(distmat)
        dist = distmat[i, j]
        if max_height > 0:
            dist = min(dist, max_height)

        nodes[i] = ClusterNode.merge(nodes[i], nodes[j], dist / 2)
        del nodes[j]
        distmat = merge_rows(distmat, i, j)

    return nodes[0]


def infer_tree(distmat, labels, max_height=0, verbose=False):
    """Run UPGMA and return the raw Newick text (before any collapsing)."""
    root = upgma(distmat, labels, max_height=max_height)
    if verbose:
        n_internal = sum(1 for node in root.iter_nodes() if not node.is_leaf)
        console.print(f"  [green]✓[/green] UPGMA joined {len(labels)} samples with {n_internal} internal nodes")
    return root.newick + ';'


def internal_heights(root: ClusterNode) -> List[float]:
    """Heights of all internal nodes, parents first."""
    return [node.height for node in root.iter_nodes() if not node.is_leaf]


__all__ = [
    'ClusterNode',
    'check_distance_matrix',
    'closest_pair',
    'infer_tree',
    'internal_heights',
    'merge_rows',
    'upgma',
]
