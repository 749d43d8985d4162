"""Configuration parsing and validation for the clustering pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from rich.console import Console

from alleletree.core.errors import ConfigurationError

console = Console(stderr=True)


class DistanceMetric(Enum):
    ABSOLUTE = 'absolute_allele_differences'
    NORMALIZED = 'normalized_allele_differences'

    @classmethod
    def parse(cls, value):
        """Accept an enum member, its value, or the short name ('absolute')."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise ConfigurationError(
            f"Distance metric {value} not implemented. Must be one of "
            f"{', '.join(m.name.lower() for m in cls)}"
        )


class Algorithm(Enum):
    UPGMA = 'upgma'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text == member.value:
                return member
        raise ConfigurationError(
            f"Algorithm {value} not implemented. Must be one of "
            f"{', '.join(m.value for m in cls)}"
        )


@dataclass(frozen=True)
class ClusteringConfig:
    """Configuration for distance computation and tree building.

    String values for ``distance`` and ``algorithm`` are parsed into enums
    when the object is created; anything invalid raises ConfigurationError
    before any computation happens. Instances are frozen: use
    ``dataclasses.replace`` to derive a changed, revalidated config.
    """

    distance: Union[str, DistanceMetric] = DistanceMetric.ABSOLUTE
    algorithm: Union[str, Algorithm] = Algorithm.UPGMA

    # 0 means branch heights are never capped
    max_tree_height: float = 0

    # Count a locus as compared when either allele is missing, as older
    # releases did for the normalized metric
    legacy_normalized: bool = False

    # General
    nproc: int = 4
    verbose: bool = True

    def __post_init__(self):
        validate_config(self)


def _height_errors(metric, height):
    errors = []
    if height < 0:
        errors.append(f"max_tree_height must be >= 0, got {height}")
    elif metric is DistanceMetric.NORMALIZED and height > 1:
        errors.append(
            f"max_tree_height of {height} not appropriate for normalized allele "
            f"differences as trees already can't have a height over 1. "
            f"Should be a value between 0 and 1."
        )
    elif metric is DistanceMetric.ABSOLUTE and 0 < height < 1:
        errors.append(
            f"max_tree_height of {height} not appropriate for absolute allele "
            f"differences as fractional allele differences are not possible. "
            f"Should be 0 or a value of at least 1."
        )
    return errors


def validate_config(config):
    """Parse and validate a ClusteringConfig in place.

    Parsed values are stored with object.__setattr__ since the config is
    frozen once built.

    Parameters:
        config: ClusteringConfig instance

    Raises:
        ConfigurationError: If any setting is invalid. All problems are
            reported together.
    """
    errors = []

    try:
        object.__setattr__(config, 'distance', DistanceMetric.parse(config.distance))
    except ConfigurationError as e:
        errors.append(str(e))

    try:
        object.__setattr__(config, 'algorithm', Algorithm.parse(config.algorithm))
    except ConfigurationError as e:
        errors.append(str(e))

    try:
        object.__setattr__(config, 'max_tree_height', float(config.max_tree_height))
    except (TypeError, ValueError):
        errors.append(f"max_tree_height must be numeric, got {config.max_tree_height!r}")
    else:
        if isinstance(config.distance, DistanceMetric):
            errors.extend(_height_errors(config.distance, config.max_tree_height))

    if config.nproc < 1:
        errors.append("nproc must be >= 1")

    if errors:
        console.print("[bold red]Configuration Errors:[/bold red]")
        for error in errors:
            console.print(f"  ✗ {error}")
        raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}")


def print_config_summary(config):
    """Print a summary of the configuration."""
    console.print("\n[bold]Configuration Summary:[/bold]")
    console.print(f"  Distance: {config.distance.name.lower()}")
    if config.distance is DistanceMetric.NORMALIZED and config.legacy_normalized:
        console.print("    compared loci: legacy (either allele missing)")
    console.print(f"  Algorithm: {config.algorithm.value}")
    console.print(f"  Max tree height: {config.max_tree_height if config.max_tree_height else 'unlimited'}")
    console.print(f"  Threads: {config.nproc}")


__all__ = [
    'Algorithm',
    'ClusteringConfig',
    'DistanceMetric',
    'print_config_summary',
    'validate_config',
]
