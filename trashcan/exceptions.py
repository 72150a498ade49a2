"""
trashcan exception hierarchy.

All custom exceptions inherit from TrashCanException so callers can
catch a single base type when they want a broad safety net.
"""


class TrashCanException(Exception):
    """Base exception for all trashcan errors."""


class ConfigurationError(TrashCanException, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""


class CorruptEntryError(TrashCanException):
    """Raised while reading a stored value that cannot be handed back.

    The engine catches this internally, evicts the key, and reports the
    lookup as corrupted instead of propagating it.
    """


class SweeperError(TrashCanException):
    """Raised on invalid sweeper lifecycle transitions."""
