"""alleletree pipeline - DistanceMatrix orchestrator

Stages, each computed once and cached:
1. Distances: symmetric distance matrix from the allele profiles
2. Tree: UPGMA tree with zero-length internal branches collapsed
3. Reordered: distance matrix permuted to the tree's leaf order

Asking for a later stage runs the earlier ones first. Cached arrays are never
handed out directly; callers get copies.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
from rich.console import Console

from alleletree.config_utils import Algorithm, ClusteringConfig
from alleletree.core.distances import compute_distance_matrix
from alleletree.core.profiles import ProfileSet, sanitize_samples
from alleletree.cluster.newick import collapse_zero_length_branches, leaf_order
from alleletree.cluster.reorder import reorder_matrix, reordered_labels
from alleletree.cluster.upgma import check_distance_matrix, infer_tree

console = Console(stderr=True)


class Stage(Enum):
    DISTANCES = 1
    TREE = 2
    REORDERED = 3


@dataclass(frozen=True)
class ClusterResult:
    """Output of a full run.

    Attributes:
        tree: Newick text ending in ';'
        samples: Sample held by each row (and column) of ``matrix``
        matrix: Distance matrix reordered to match the tree
        leaf_order: Sample names in the order the tree lists its leaves
    """

    tree: str
    samples: Tuple[str, ...]
    matrix: np.ndarray
    leaf_order: Tuple[str, ...]


class DistanceMatrix:
    """Distance matrix and UPGMA tree for a set of allele profiles."""

    def __init__(self, samples: Sequence[str], config: Optional[ClusteringConfig] = None,
                 profiles: Optional[ProfileSet] = None):
        self.config = config if config is not None else ClusteringConfig()
        self._samples = tuple(samples)
        self._profiles = profiles
        self._cache: Dict[Stage, Any] = {}

    @classmethod
    def from_profiles(cls, profile_dict: Mapping[str, Sequence], config: Optional[ClusteringConfig] = None,
                      **config_kwargs):
        """Build from a sample -> alleles mapping.

        Either pass a ClusteringConfig or its fields as keyword arguments
        (``distance='normalized'``, ``max_tree_height=50``, ...).
        """
        if config is None:
            config = ClusteringConfig(**config_kwargs)
        elif config_kwargs:
            raise TypeError('Pass either a ClusteringConfig or config keyword arguments, not both')
        profiles = ProfileSet.from_mapping(profile_dict)
        return cls(profiles.samples, config=config, profiles=profiles)

    @classmethod
    def from_distance_matrix(cls, samples: Sequence[str], distmat, config: Optional[ClusteringConfig] = None,
                             **config_kwargs):
        """Build from a precomputed distance matrix indexed like ``samples``."""
        if config is None:
            config = ClusteringConfig(**config_kwargs)
        elif config_kwargs:
            raise TypeError('Pass either a ClusteringConfig or config keyword arguments, not both')
        samples = sanitize_samples(samples)
        distmat = check_distance_matrix(distmat, samples).copy()
        distmat.setflags(write=False)
        dmat = cls(samples, config=config)
        dmat._cache[Stage.DISTANCES] = distmat
        return dmat

    @property
    def samples(self):
        """Sample names in input order."""
        return self._samples

    def _log(self, message):
        if self.config.verbose:
            console.print(message)

    def _distances(self):
        if Stage.DISTANCES not in self._cache:
            self._log(f'Computing {self.config.distance.name.lower()} distance matrix '
                      f'for {len(self._samples)} samples...')
            distmat = compute_distance_matrix(
                self._profiles,
                metric=self.config.distance,
                legacy_normalized=self.config.legacy_normalized,
                nproc=self.config.nproc,
            )
            distmat.setflags(write=False)
            self._cache[Stage.DISTANCES] = distmat
            self._log('  [green]✓[/green] Distance matrix computed')
        return self._cache[Stage.DISTANCES]

    def _tree(self):
        if Stage.TREE not in self._cache:
            distmat = self._distances()
            if self.config.algorithm is Algorithm.UPGMA:
                self._log('Building UPGMA tree...')
                raw = infer_tree(distmat, self._samples,
                                 max_height=self.config.max_tree_height,
                                 verbose=self.config.verbose)
            else:
                raise ValueError(f"Requested tree-inference algorithm: {self.config.algorithm} is not implemented")
            tree = collapse_zero_length_branches(raw)
            self._cache[Stage.TREE] = (tree, tuple(leaf_order(tree)))
        return self._cache[Stage.TREE]

    def _reordered(self):
        if Stage.REORDERED not in self._cache:
            _, leaves = self._tree()
            reordered = reorder_matrix(self._distances(), self._samples, leaves)
            reordered.setflags(write=False)
            self._cache[Stage.REORDERED] = (reordered, reordered_labels(self._samples, leaves))
        return self._cache[Stage.REORDERED]

    @property
    def distmat(self):
        """Distance matrix in input sample order (a copy)."""
        return self._distances().copy()

    @property
    def tree(self):
        """Newick tree text."""
        return self._tree()[0]

    @property
    def leaf_order(self):
        """Sample names in the order the tree lists its leaves."""
        return self._tree()[1]

    @property
    def reordered_distmat(self):
        """Distance matrix permuted to the tree's leaf order (a copy).

        Rows and columns belong to ``reordered_samples``.
        """
        return self._reordered()[0].copy()

    @property
    def reordered_samples(self):
        """Sample held by each row of ``reordered_distmat``."""
        return self._reordered()[1]

    def run(self) -> ClusterResult:
        """Run every stage and return the tree with its reordered matrix."""
        return ClusterResult(tree=self.tree, samples=self.reordered_samples,
                             matrix=self.reordered_distmat, leaf_order=self.leaf_order)


def run_pipeline(profile_dict, config: Optional[ClusteringConfig] = None) -> ClusterResult:
    """Cluster a sample -> alleles mapping and return the result."""
    return DistanceMatrix.from_profiles(profile_dict, config=config).run()


__all__ = ['ClusterResult', 'DistanceMatrix', 'Stage', 'run_pipeline']
