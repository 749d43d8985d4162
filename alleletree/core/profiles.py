"""Sample name sanitisation and the ProfileSet container."""

import re
from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

import numpy as np

from alleletree.core.errors import ProfileError

# Characters that would break Newick text if left in a leaf label
NEWICK_UNSAFE = re.compile(r"""[() ,":;']""")

# Key used by JSON profile dumps for the locus header row
HEADER_KEY = 'Headers'

MISSING = ''


def sanitize_name(name):
    """Replace Newick-unsafe characters in a sample name with underscores."""
    return NEWICK_UNSAFE.sub('_', str(name))


def sanitize_samples(names):
    """Sanitise sample names, rejecting empty names and collisions.

    Returns:
        list: Sanitised names in input order.

    Raises:
        ProfileError: If a name is empty or two names collide after
            sanitisation.
    """
    samples = []
    origin = {}
    for position, name in enumerate(names):
        clean = sanitize_name(name)
        if not clean:
            raise ProfileError(f"Sample {position + 1} has an empty name")
        if clean in origin:
            raise ProfileError(
                f"Sample names {origin[clean]!r} and {name!r} both become "
                f"{clean!r} after replacing characters not allowed in Newick labels"
            )
        origin[clean] = name
        samples.append(clean)
    return samples


def _allele(value):
    if value is None:
        return MISSING
    return str(value).strip()


@dataclass(frozen=True)
class ProfileSet:
    """Ordered, sanitised allele profiles.

    Attributes:
        samples: Sample names after sanitisation, unique.
        profiles: One allele vector per sample, all the same length.
            An empty string marks a missing allele.
    """

    samples: Tuple[str, ...]
    profiles: Tuple[Tuple[str, ...], ...]

    def __len__(self):
        return len(self.samples)

    @property
    def n_loci(self):
        return len(self.profiles[0]) if self.profiles else 0

    @classmethod
    def from_mapping(cls, profile_dict: Mapping[str, Sequence]) -> 'ProfileSet':
        """Build a ProfileSet from a sample -> alleles mapping.

        Mapping order is kept. A ``Headers`` entry is treated as the locus
        header row and skipped.

        Raises:
            ProfileError: If a name is empty, if two names collide after
                sanitisation, if the allele vectors differ in length, or if
                there are no samples.
        """
        names = []
        profiles = []
        for name, alleles in profile_dict.items():
            if name == HEADER_KEY:
                continue
            names.append(name)
            profiles.append(tuple(_allele(a) for a in alleles))
        samples = sanitize_samples(names)

        if not samples:
            raise ProfileError('No samples found in the allele profiles')

        n_loci = len(profiles[0])
        for name, profile in zip(samples, profiles):
            if len(profile) != n_loci:
                raise ProfileError(
                    f"Sample {name!r} has {len(profile)} alleles but "
                    f"{samples[0]!r} has {n_loci}. All profiles must cover the same loci."
                )

        return cls(tuple(samples), tuple(profiles))

    def encode(self):
        """Return the profiles as an int32 matrix (n_samples x n_loci).

        Each distinct allele token gets a positive integer code in sorted
        token order; missing alleles are 0.
        """
        if self.n_loci == 0:
            return np.zeros((len(self.samples), 0), dtype=np.int32)

        alleles = np.array(self.profiles, dtype=str)
        uniques, inverse = np.unique(alleles, return_inverse=True)
        codes = np.arange(1, len(uniques) + 1, dtype=np.int32)
        codes[uniques == MISSING] = 0
        return codes[inverse].reshape(alleles.shape).astype(np.int32)


__all__ = ['HEADER_KEY', 'ProfileSet', 'sanitize_name', 'sanitize_samples']
