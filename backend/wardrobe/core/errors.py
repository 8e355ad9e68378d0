from __future__ import annotations


class WardrobeError(Exception):
    """Base for errors that map onto an HTTP status at the API boundary."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WardrobeError):
    status_code = 400


class NotFoundError(WardrobeError):
    status_code = 404

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class StorageError(WardrobeError):
    """Filesystem or database failure; the message is safe to show to callers."""

    status_code = 500
