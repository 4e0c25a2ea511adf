"""
Exceptions raised by the storage service and the integrity tools built on it.
"""


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class TransientBackendError(StorageError):
    """A backend could not give a definite answer (network, timeout, permission).

    Never means "file missing". Existence checks turn it into an unknown
    result and uploads fall back to local storage on it.
    """

    def __init__(self, message: str, backend: str = None, key: str = None):
        super().__init__(message)
        self.backend = backend
        self.key = key


class NotFoundError(StorageError):
    """A backend explicitly reported the object as absent."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class UnparseableReferenceError(StorageError):
    """No storage key could be derived from a stored URL."""

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


class ReconciliationWriteError(StorageError):
    """Correcting a file reference in the database failed."""

    def __init__(self, message: str, category: str = None, reference_id: int = None):
        super().__init__(message)
        self.category = category
        self.reference_id = reference_id


class UploadValidationError(StorageError):
    """Upload rejected for a reason the user can act on (type, size, empty file)."""
    pass
