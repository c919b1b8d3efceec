"""Exception hierarchy for valstore."""

from __future__ import annotations


class ValstoreError(Exception):
    """Base exception for all valstore errors."""


class ConfigurationError(ValstoreError):
    """A store was built or looked up with invalid configuration.

    Raised for a missing or non-container initial state and for unknown
    registry names.
    """


class ProtocolError(ValstoreError):
    """A store operation was called in a state that does not allow it.

    Nested transactions, unaddressable paths and similar misuse. The
    offending call has no effect on the stored state.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)
