"""DICOMweb gateway service: translates DICOMweb HTTP requests to DIMSE operations."""

from dicomgate.services.dicomweb.cache import TranscodeCache
from dicomgate.services.dicomweb.canonical import (
    apply_default,
    fix_response,
    sort_by_instance_number,
)
from dicomgate.services.dicomweb.multipart import build_multipart_parts, extract_pixel_data
from dicomgate.services.dicomweb.query import FindOrchestrator
from dicomgate.services.dicomweb.service import DicomWebGatewayService

__all__ = [
    "DicomWebGatewayService",
    "FindOrchestrator",
    "TranscodeCache",
    "apply_default",
    "build_multipart_parts",
    "extract_pixel_data",
    "fix_response",
    "sort_by_instance_number",
]
