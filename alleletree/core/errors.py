"""Exceptions raised by alleletree."""


class AlleleTreeError(Exception):
    """Base class for all alleletree errors."""


class ConfigurationError(AlleleTreeError, ValueError):
    """Invalid metric, algorithm or tree height."""


class ProfileError(AlleleTreeError, ValueError):
    """Allele profiles that cannot be clustered as given."""


class NewickError(AlleleTreeError, RuntimeError):
    """Generated Newick text broke a structural invariant."""


__all__ = ['AlleleTreeError', 'ConfigurationError', 'ProfileError', 'NewickError']
