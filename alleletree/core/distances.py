"""Pairwise allele distance matrices.

Profiles are integer-encoded (0 = missing) and handed to numba kernels that
parallelise over rows with prange. Row i only fills cells (i, j) and (j, i)
for j > i, so the workers never write the same cell.
"""

import numpy as np
import numba as nb
from numba import prange
from rich.console import Console

from alleletree.config_utils import DistanceMetric

console = Console(stderr=True)


def compute_distance_matrix(profile_set, metric=DistanceMetric.ABSOLUTE,
                            legacy_normalized=False, nproc=None):
    """Compute the symmetric distance matrix for a ProfileSet.

    Parameters:
        profile_set (ProfileSet): Sanitised profiles
        metric (DistanceMetric): ABSOLUTE counts differing loci where both
            alleles are present; NORMALIZED divides differing compared loci by
            the number of compared loci
        legacy_normalized (bool): For NORMALIZED, count a locus as compared
            when at least one allele is missing instead of when both are present
        nproc (int): Upper bound on numba threads (default: numba's setting)

    Returns:
        ndarray: float64 (n_samples x n_samples), symmetric with zero diagonal
    """
    metric = DistanceMetric.parse(metric)
    mat = profile_set.encode()

    if nproc is not None:
        nb.set_num_threads(max(1, min(int(nproc), nb.config.NUMBA_NUM_THREADS)))

    if metric is DistanceMetric.ABSOLUTE:
        dist = absolute_dist_parallel(mat)
    elif metric is DistanceMetric.NORMALIZED:
        dist = normalized_dist_parallel(mat, bool(legacy_normalized))
    else:
        raise ValueError(f"Requested distance metric: {metric} is not implemented")

    return dist


@nb.njit(parallel=True, cache=True)
def absolute_dist_parallel(mat):
    """
    Count loci where both alleles are present and differ.

    Parameters:
        mat: int32 array (N_profiles x N_loci), 0 = missing

    Returns:
        float64 array (N_profiles x N_profiles)
    """
    N = mat.shape[0]
    L = mat.shape[1]
    out = np.zeros((N, N), dtype=np.float64)

    for i in prange(N):
        for j in range(i + 1, N):
            diffs = 0
            for k in range(L):
                a = mat[i, k]
                b = mat[j, k]
                if a != 0 and b != 0 and a != b:
                    diffs += 1
            out[i, j] = diffs
            out[j, i] = diffs

    return out


@nb.njit(parallel=True, cache=True)
def normalized_dist_parallel(mat, legacy):
    """
    Fraction of compared loci that differ.

    A locus is compared when both alleles are present, or with ``legacy``
    when at least one of them is missing. Pairs with no compared loci get 0.

    Parameters:
        mat: int32 array (N_profiles x N_loci), 0 = missing
        legacy: bool, use the either-missing definition of a compared locus

    Returns:
        float64 array (N_profiles x N_profiles) with values in [0, 1]
    """
    N = mat.shape[0]
    L = mat.shape[1]
    out = np.zeros((N, N), dtype=np.float64)

    for i in prange(N):
        for j in range(i + 1, N):
            diffs = 0
            compared = 0
            for k in range(L):
                a = mat[i, k]
                b = mat[j, k]
                both_present = a != 0 and b != 0
                if both_present == legacy:
                    continue
                compared += 1
                if a != b:
                    diffs += 1
            rel = 0.0
            if compared > 0:
                rel = diffs / compared
            out[i, j] = rel
            out[j, i] = rel

    return out


__all__ = ['compute_distance_matrix', 'absolute_dist_parallel', 'normalized_dist_parallel']
