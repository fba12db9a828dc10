"""DICOMweb router: QIDO-RS and WADO-RS endpoints.

Translates DICOMweb HTTP requests into C-FIND queries and cached transcodes
via the DicomWebGatewayService, so viewers such as OHIF can browse an archive
that only speaks DIMSE.
"""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from dicomgate.api.dependencies import DicomWebServiceDep
from dicomgate.exceptions.domain import InvalidUidError
from dicomgate.utils.validation import is_valid_uid

router = APIRouter()

DICOM_JSON_CONTENT_TYPE = "application/dicom+json"

# Literal segments of the study resource paths
PATH_KEYWORDS = frozenset({"series", "instances", "metadata", "frames"})


def _dicom_json(content: list) -> JSONResponse:
    return JSONResponse(content=content, media_type=DICOM_JSON_CONTENT_TYPE)


@router.get("/rs/studies")
async def search_studies(request: Request, service: DicomWebServiceDep) -> JSONResponse:
    """QIDO-RS: Search for studies.

    Args:
        request: FastAPI request (query params forwarded to C-FIND)
        service: DICOMweb gateway service

    Returns:
        DICOM JSON array of matching studies
    """
    results = await service.search_studies(dict(request.query_params))
    return _dicom_json(results)


@router.get("/rs/studies/{study_uid}/metadata")
async def retrieve_study_metadata(
    study_uid: str, request: Request, service: DicomWebServiceDep
) -> JSONResponse:
    """WADO-RS: Study metadata, one record per series."""
    results = await service.retrieve_study_metadata(study_uid, dict(request.query_params))
    return _dicom_json(results)


@router.get("/rs/studies/{study_uid}/series")
async def search_series(
    study_uid: str, request: Request, service: DicomWebServiceDep
) -> JSONResponse:
    """QIDO-RS: Search for series within a study.

    Args:
        study_uid: Study Instance UID
        request: FastAPI request (query params forwarded to C-FIND)
        service: DICOMweb gateway service

    Returns:
        DICOM JSON array of matching series
    """
    results = await service.search_series(study_uid, dict(request.query_params))
    return _dicom_json(results)


@router.get("/rs/studies/{study_uid}/series/{series_uid}/instances")
async def search_instances(
    study_uid: str, series_uid: str, request: Request, service: DicomWebServiceDep
) -> JSONResponse:
    """QIDO-RS: Search for instances within a series, sorted by Instance Number.

    Args:
        study_uid: Study Instance UID
        series_uid: Series Instance UID
        request: FastAPI request (query params forwarded to C-FIND)
        service: DICOMweb gateway service

    Returns:
        DICOM JSON array of matching instances
    """
    results = await service.search_instances(study_uid, series_uid, dict(request.query_params))
    return _dicom_json(results)


@router.get("/rs/studies/{study_uid}/series/{series_uid}/metadata")
async def retrieve_series_metadata(
    study_uid: str, series_uid: str, request: Request, service: DicomWebServiceDep
) -> JSONResponse:
    """WADO-RS: Metadata for all instances in a series.

    Display attributes missing from the archive reply are defaulted and the
    instances are sorted by Instance Number.

    Args:
        study_uid: Study Instance UID
        series_uid: Series Instance UID
        request: FastAPI request
        service: DICOMweb gateway service

    Returns:
        DICOM JSON array of instance metadata
    """
    results = await service.retrieve_series_metadata(
        study_uid, series_uid, dict(request.query_params)
    )
    return _dicom_json(results)


@router.get("/rs/studies/{study_uid}/series/{series_uid}/instances/{sop_uid}/metadata")
async def retrieve_instance_metadata(
    study_uid: str,
    series_uid: str,
    sop_uid: str,
    request: Request,
    service: DicomWebServiceDep,
) -> JSONResponse:
    """WADO-RS: Metadata for a single instance."""
    results = await service.retrieve_instance_metadata(
        study_uid, series_uid, sop_uid, dict(request.query_params)
    )
    return _dicom_json(results)


@router.get("/rs/studies/{study_uid}/series/{series_uid}/instances/{sop_uid}/frames/{frames}")
async def retrieve_frames(
    study_uid: str,
    series_uid: str,
    sop_uid: str,
    frames: str,
    service: DicomWebServiceDep,
) -> StreamingResponse:
    """WADO-RS: Pixel data of an instance as multipart/related.

    Args:
        study_uid: Study Instance UID
        series_uid: Series Instance UID
        sop_uid: SOP Instance UID
        frames: Frame list; the whole Pixel Data element is returned regardless
        service: DICOMweb gateway service

    Returns:
        Multipart response with raw pixel data
    """
    parts, content_type = await service.retrieve_frames(study_uid, series_uid, sop_uid, frames)
    return StreamingResponse(parts, media_type=content_type)


@router.get("/rs/studies/{rest:path}", include_in_schema=False)
async def reject_unmatched(rest: str) -> None:
    """Answer study paths that no route above matched.

    Percent-encoded slashes are decoded before routing, so an identifier such
    as ``..%2F..%2Fetc`` splits into extra segments and falls through to here.
    Any segment in an identifier position that is not a UID is rejected as a
    bad UID; a well-formed but unknown path is a plain 404.

    Raises:
        InvalidUidError: If an identifier segment is not a valid UID
        HTTPException: 404 for unknown resource paths
    """
    segments = rest.rstrip("/").split("/")
    for previous, segment in zip(["", *segments], segments, strict=False):
        if segment in PATH_KEYWORDS or previous == "frames":
            continue
        if not is_valid_uid(segment):
            raise InvalidUidError(segment)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
