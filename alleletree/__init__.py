"""alleletree: UPGMA trees and distance matrices from allele profiles."""

from alleletree.config_utils import Algorithm, ClusteringConfig, DistanceMetric
from alleletree.core.errors import (
    AlleleTreeError,
    ConfigurationError,
    NewickError,
    ProfileError,
)
from alleletree.main import ClusterResult, DistanceMatrix

__version__ = '0.1.0'

__all__ = [
    'Algorithm',
    'AlleleTreeError',
    'ClusterResult',
    'ClusteringConfig',
    'ConfigurationError',
    'DistanceMatrix',
    'DistanceMetric',
    'NewickError',
    'ProfileError',
]
