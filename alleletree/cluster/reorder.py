"""Reordering of the distance matrix to follow a tree's leaf order."""

import numpy as np


def leaf_positions(samples, leaves):
    """Return p where p[i] is the position of samples[i] in the leaf order.

    Raises:
        ValueError: If the leaves are not a permutation of the samples.
    """
    position = {leaf: idx for idx, leaf in enumerate(leaves)}
    if len(position) != len(leaves) or len(leaves) != len(samples) or set(samples) != set(position):
        missing = sorted(set(samples) - set(position))
        extra = sorted(set(position) - set(samples))
        raise ValueError(
            f"Tree leaves do not match the samples one to one "
            f"(missing from tree: {missing}, not a sample: {extra}, "
            f"{len(leaves)} leaves for {len(samples)} samples)"
        )
    return np.array([position[s] for s in samples], dtype=np.intp)


def reorder_matrix(distmat, samples, leaves):
    """Permute a distance matrix so that new[i][j] == old[p(i)][p(j)].

    Parameters:
        distmat: Square matrix indexed like ``samples``
        samples: Sample names in matrix order
        leaves: Leaf names in tree order

    Returns:
        ndarray: New matrix; the input is not modified.
    """
    p = leaf_positions(samples, leaves)
    return np.asarray(distmat)[np.ix_(p, p)]


def reordered_labels(samples, leaves):
    """Sample held by each row of reorder_matrix's output.

    Row i of the reordered matrix is row p(i) of the original, so it belongs
    to samples[p(i)]. This equals ``leaves`` only when applying p twice gives
    back the original order.
    """
    p = leaf_positions(samples, leaves)
    return tuple(samples[k] for k in p)


def restore_matrix(distmat, samples, leaves):
    """Undo reorder_matrix for the same samples and leaves."""
    distmat = np.asarray(distmat)
    p = leaf_positions(samples, leaves)
    restored = np.empty_like(distmat)
    restored[np.ix_(p, p)] = distmat
    return restored


__all__ = ['leaf_positions', 'reorder_matrix', 'reordered_labels', 'restore_matrix']
