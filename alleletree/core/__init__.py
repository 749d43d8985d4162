"""Core data handling for allele profiles.

Submodules:
- errors: Exception hierarchy
- profiles: Sample name sanitisation and the ProfileSet container
- input: Profile file readers
- distances: Distance matrix computation
"""

__all__ = ['errors', 'profiles', 'input', 'distances']
