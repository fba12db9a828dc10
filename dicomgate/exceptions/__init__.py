"""Exceptions for dicomgate."""

from dicomgate.exceptions.domain import (
    DicomError,
    DicomFileNotFoundError,
    GatewayError,
    InvalidPathError,
    InvalidUidError,
    MissingParametersError,
    ReadError,
    StorageError,
    TranscodeError,
    ValidationError,
)

__all__ = [
    "DicomError",
    "DicomFileNotFoundError",
    "GatewayError",
    "InvalidPathError",
    "InvalidUidError",
    "MissingParametersError",
    "ReadError",
    "StorageError",
    "TranscodeError",
    "ValidationError",
]
