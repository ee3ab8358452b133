from __future__ import annotations


class RepresentativeError(Exception):
    """Base exception for representative monitoring errors."""
    pass


class SourceTransportError(RepresentativeError):
    """Raised when an external source is unreachable or returns an unusable body."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class KnownListError(RepresentativeError):
    """Raised when the persisted known-representative list cannot be parsed."""
    pass


class KeyValueStoreError(RepresentativeError):
    """Raised when the key-value store backend fails."""
    pass
