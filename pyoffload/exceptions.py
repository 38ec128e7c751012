"""Exceptions raised by pyoffload."""


class OffloadError(Exception):
    """Base exception for all pyoffload errors."""


class OffloadConfigError(OffloadError):
    """Required storage configuration (credentials, bucket, endpoint) is missing."""


class OffloadStorageError(OffloadError):
    """An object storage request failed at the protocol level."""

    def __init__(self, message: str, error_code: str = "", status_code: int = 0):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code


class OffloadListError(OffloadStorageError):
    """Listing remote objects could not complete.

    Reconciliation cannot determine remote existence without a complete
    listing, so this aborts the run before any file is touched.
    """


class OffloadInventoryError(OffloadError):
    """The inventory of local media items could not be read."""
