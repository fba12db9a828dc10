"""WADO-URI router: whole-object retrieval by query parameters."""

from fastapi import APIRouter
from fastapi.responses import Response

from dicomgate.api.dependencies import DicomWebServiceDep

router = APIRouter()

# Kept for compatibility with existing clients even though the body is binary DICOM
WADOURI_CONTENT_TYPE = "application/dicom+json"


@router.get("/wadouri")
async def retrieve_object(
    service: DicomWebServiceDep,
    studyUID: str | None = None,  # noqa: N803
    seriesUID: str | None = None,  # noqa: N803
    objectUID: str | None = None,  # noqa: N803
) -> Response:
    """WADO-URI: Retrieve a whole object, transcoded to the configured transfer syntax.

    Args:
        service: DICOMweb gateway service
        studyUID: Study Instance UID
        seriesUID: Series Instance UID
        objectUID: SOP Instance UID

    Returns:
        Raw DICOM file bytes
    """
    data = await service.retrieve_object(studyUID, seriesUID, objectUID)
    return Response(content=data, media_type=WADOURI_CONTENT_TYPE)
