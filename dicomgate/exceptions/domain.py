"""
Domain exceptions for the gateway service layer.

These exceptions represent gateway failures without coupling to HTTP status
codes; ``dicomgate.api.exception_handlers`` maps them to responses.
"""


class GatewayError(Exception):
    """Base exception for all dicomgate-specific errors."""

    pass


# Request validation
class ValidationError(GatewayError):
    """Raised when client-supplied data fails validation."""

    pass


class InvalidUidError(ValidationError):
    """Raised when a study/series/object identifier is malformed."""

    def __init__(self, uid: object = None) -> None:
        message = f"Invalid UID format: {uid!r}" if uid is not None else "Invalid UID format"
        super().__init__(message)


class InvalidPathError(ValidationError):
    """Raised when a resolved path escapes the storage root."""

    def __init__(self) -> None:
        super().__init__("Invalid path")


class MissingParametersError(ValidationError):
    """Raised when required query parameters are absent."""

    def __init__(self, names: list[str] | None = None) -> None:
        if names:
            super().__init__(f"Error missing parameters: {', '.join(names)}")
        else:
            super().__init__("Error missing parameters.")


# Storage errors
class StorageError(GatewayError):
    """Raised when a file storage operation fails."""

    pass


class DicomFileNotFoundError(StorageError):
    """Raised when the requested archive object does not exist."""

    def __init__(self, path: object) -> None:
        super().__init__(f"File not found: {path}")


class ReadError(StorageError):
    """Raised when a cached object cannot be read or lacks pixel data."""

    pass


# DICOM errors
class DicomError(GatewayError):
    """Base exception for DICOM-related errors."""

    pass


class TranscodeError(DicomError):
    """Raised when the engine fails to transcode an object."""

    pass
