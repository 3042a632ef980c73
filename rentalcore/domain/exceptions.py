"""
Domain-specific exception hierarchy for the rental core.
"""


class RentalCoreError(Exception):
    """Base class for all application-level errors."""


class StorageAPIError(RentalCoreError):
    """Raised when reservation data cannot be fetched or written."""


class NotFoundError(RentalCoreError):
    """Raised when a requested equipment item does not exist."""


class ReservationConflictError(RentalCoreError):
    """Raised when storage rejects a reservation that overlaps an active one."""
