"""
Exception handlers for converting domain exceptions to HTTP responses.

This module maps domain exceptions to status codes and the short plain-text
messages DICOMweb clients receive. Internal detail is logged, not returned.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from dicomgate.api.headers import ISOLATION_HEADERS
from dicomgate.utils.logger import logger


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup exception handlers using decorators.

    Args:
        app: FastAPI application instance
    """
    from dicomgate.exceptions.domain import (
        DicomFileNotFoundError,
        InvalidPathError,
        InvalidUidError,
        MissingParametersError,
        ReadError,
        TranscodeError,
        ValidationError,
    )

    @app.exception_handler(InvalidUidError)
    async def handle_invalid_uid(_: Request, exc: InvalidUidError) -> PlainTextResponse:
        """Convert InvalidUidError to 400 response."""
        logger.warning(str(exc))
        return PlainTextResponse("Invalid UID format", status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(InvalidPathError)
    async def handle_invalid_path(_: Request, _exc: InvalidPathError) -> PlainTextResponse:
        """Convert InvalidPathError to 400 response."""
        return PlainTextResponse("Invalid path", status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(MissingParametersError)
    async def handle_missing_parameters(
        _: Request, exc: MissingParametersError
    ) -> PlainTextResponse:
        """Convert MissingParametersError to 400 response."""
        logger.error(str(exc))
        return PlainTextResponse(
            "Error missing parameters.", status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(_: Request, exc: ValidationError) -> PlainTextResponse:
        """Convert other ValidationErrors to 400 response."""
        return PlainTextResponse(
            str(exc) or "Invalid request", status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(DicomFileNotFoundError)
    async def handle_file_not_found(_: Request, exc: DicomFileNotFoundError) -> PlainTextResponse:
        """Convert DicomFileNotFoundError to 404 response."""
        logger.error(str(exc))
        return PlainTextResponse("File not found", status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(TranscodeError)
    async def handle_transcode_error(_: Request, exc: TranscodeError) -> PlainTextResponse:
        """Convert TranscodeError to 500 response."""
        logger.error(f"Transcoding failed: {exc}")
        return PlainTextResponse(
            "Failed to process file", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    @app.exception_handler(ReadError)
    async def handle_read_error(_: Request, exc: ReadError) -> PlainTextResponse:
        """Convert ReadError to 500 response."""
        logger.error(str(exc))
        return PlainTextResponse(
            "Error reading file", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        """Log anything unhandled and return a generic 500.

        Starlette answers these outside the http middleware stack, so the
        isolation headers are attached here.
        """
        logger.opt(exception=exc).error(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
            headers=ISOLATION_HEADERS,
        )
