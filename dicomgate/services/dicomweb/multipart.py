"""Multipart response builder for WADO-RS frame retrieval."""

import uuid
from collections.abc import Iterator
from pathlib import Path

import pydicom
from pydicom.errors import InvalidDicomError

from dicomgate.exceptions.domain import ReadError

CRLF = b"\r\n"


def extract_pixel_data(path: Path) -> bytes:
    """Read an object from disk and return the raw Pixel Data element value.

    Args:
        path: DICOM file, typically a cached uncompressed copy

    Returns:
        Pixel Data bytes exactly as stored

    Raises:
        ReadError: If the file cannot be parsed or has no Pixel Data
    """
    try:
        ds = pydicom.dcmread(path)
    except (OSError, InvalidDicomError) as e:
        raise ReadError(f"Cannot read {path}: {e}") from e
    except Exception as e:
        # Truncated or malformed elements surface as assorted parser errors
        raise ReadError(f"Cannot parse {path}: {e}") from e

    pixel_data = ds.get("PixelData")
    if pixel_data is None:
        raise ReadError(f"No pixel data in {path}")
    return bytes(pixel_data)


def new_boundary() -> str:
    """Generate a random hex boundary token."""
    return uuid.uuid4().hex


def multipart_content_type(boundary: str) -> str:
    """Content-Type header value for a multipart/related octet-stream body."""
    return f'multipart/related; type="application/octet-stream"; boundary={boundary}'


def build_multipart_parts(data: bytes, content_location: str, boundary: str) -> Iterator[bytes]:
    """Yield the framed body of a single-part multipart/related response.

    Args:
        data: Raw pixel bytes
        content_location: Path of the resource the part belongs to
        boundary: Boundary token

    Yields:
        Body chunks in order
    """
    delimiter = f"--{boundary}".encode()
    yield CRLF + delimiter + CRLF
    yield f"Content-Location: {content_location}".encode() + CRLF
    yield b"Content-Type: application/octet-stream" + CRLF
    yield CRLF
    yield data
    yield CRLF + delimiter + b"--" + CRLF
