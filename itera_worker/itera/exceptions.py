class IteraError(Exception):
    """Base exception for Itera API failures."""


class UploadError(IteraError):
    """Raised when Itera rejects or fails a document upload."""


class RemoteError(IteraError):
    """Raised when a status, export or mapping call fails or returns a malformed body."""
