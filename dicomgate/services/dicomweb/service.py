"""DICOMweb gateway service: translates DICOMweb HTTP semantics to DIMSE operations."""

import asyncio
from collections.abc import Iterator, Mapping
from pathlib import Path

from dicomgate.exceptions.domain import (
    DicomFileNotFoundError,
    InvalidPathError,
    InvalidUidError,
    MissingParametersError,
    ReadError,
)
from dicomgate.services.dicom.models import DicomRecord, QueryRetrieveLevel
from dicomgate.services.dicom.tags import (
    image_level_tags,
    image_metadata_tags,
    series_level_tags,
    study_level_tags,
)
from dicomgate.services.dicomweb.cache import TranscodeCache
from dicomgate.services.dicomweb.canonical import fix_response, sort_by_instance_number
from dicomgate.services.dicomweb.multipart import (
    build_multipart_parts,
    extract_pixel_data,
    multipart_content_type,
    new_boundary,
)
from dicomgate.services.dicomweb.query import FindOrchestrator
from dicomgate.utils.logger import logger
from dicomgate.utils.validation import is_valid_uid, resolve_safe_path

# Frames are always served uncompressed
FRAME_TRANSFER_SYNTAX = "1.2.840.10008.1.2"


def validate_uids(*uids: object) -> None:
    """Raise InvalidUidError unless every identifier is a well-formed UID."""
    for uid in uids:
        if not is_valid_uid(uid):
            raise InvalidUidError(uid)


class DicomWebGatewayService:
    """Gateway translating DICOMweb requests into C-FIND queries and cached transcodes.

    Supports QIDO-RS (search), WADO-RS (metadata, frames) and WADO-URI retrieval.
    Archive objects live at ``<storage_root>/<study uid>/<sop uid>``.
    """

    def __init__(
        self,
        finder: FindOrchestrator,
        cache: TranscodeCache,
        storage_root: Path,
        transfer_syntax: str = FRAME_TRANSFER_SYNTAX,
    ):
        """Initialize the gateway service.

        Args:
            finder: Find orchestrator for QIDO-RS and metadata
            cache: Transcode cache for object and frame retrieval
            storage_root: Archive root directory
            transfer_syntax: Target transfer syntax for WADO-URI objects
        """
        self._finder = finder
        self._cache = cache
        self._storage_root = storage_root
        self._transfer_syntax = transfer_syntax

    async def search_studies(self, params: Mapping[str, str]) -> list[DicomRecord]:
        """QIDO-RS: Search for studies.

        Args:
            params: DICOMweb query parameters (e.g. PatientID, StudyDate)

        Returns:
            List of DICOM JSON objects
        """
        return await self._finder.find(QueryRetrieveLevel.STUDY, params, study_level_tags())

    async def search_series(self, study_uid: str, params: Mapping[str, str]) -> list[DicomRecord]:
        """QIDO-RS: Search for series within a study.

        Args:
            study_uid: Study Instance UID
            params: DICOMweb query parameters

        Returns:
            List of DICOM JSON objects
        """
        validate_uids(study_uid)
        query = {**params, "StudyInstanceUID": study_uid}
        return await self._finder.find(QueryRetrieveLevel.SERIES, query, series_level_tags())

    async def search_instances(
        self, study_uid: str, series_uid: str, params: Mapping[str, str]
    ) -> list[DicomRecord]:
        """QIDO-RS: Search for instances within a series, ordered by Instance Number.

        Args:
            study_uid: Study Instance UID
            series_uid: Series Instance UID
            params: DICOMweb query parameters

        Returns:
            List of DICOM JSON objects
        """
        validate_uids(study_uid, series_uid)
        query = {**params, "StudyInstanceUID": study_uid, "SeriesInstanceUID": series_uid}
        results = await self._finder.find(QueryRetrieveLevel.IMAGE, query, image_level_tags())
        return sort_by_instance_number(results)

    async def retrieve_study_metadata(
        self, study_uid: str, params: Mapping[str, str]
    ) -> list[DicomRecord]:
        """WADO-RS: Study metadata, answered with one record per series."""
        validate_uids(study_uid)
        query = {**params, "StudyInstanceUID": study_uid}
        tags = (*study_level_tags(), *series_level_tags())
        return await self._finder.find(QueryRetrieveLevel.SERIES, query, tags)

    async def retrieve_series_metadata(
        self, study_uid: str, series_uid: str, params: Mapping[str, str]
    ) -> list[DicomRecord]:
        """WADO-RS: Metadata for all instances in a series, display-defaulted and sorted.

        Args:
            study_uid: Study Instance UID
            series_uid: Series Instance UID
            params: DICOMweb query parameters

        Returns:
            List of DICOM JSON metadata objects
        """
        validate_uids(study_uid, series_uid)
        query = {**params, "StudyInstanceUID": study_uid, "SeriesInstanceUID": series_uid}
        tags = (*study_level_tags(), *series_level_tags(), *image_metadata_tags())
        results = await self._finder.find(QueryRetrieveLevel.IMAGE, query, tags)
        return sort_by_instance_number(fix_response(results))

    async def retrieve_instance_metadata(
        self, study_uid: str, series_uid: str, sop_uid: str, params: Mapping[str, str]
    ) -> list[DicomRecord]:
        """WADO-RS: Metadata for a single instance, display-defaulted."""
        validate_uids(study_uid, series_uid, sop_uid)
        query = {
            **params,
            "StudyInstanceUID": study_uid,
            "SeriesInstanceUID": series_uid,
            "SOPInstanceUID": sop_uid,
        }
        tags = (*study_level_tags(), *series_level_tags(), *image_metadata_tags())
        results = await self._finder.find(QueryRetrieveLevel.IMAGE, query, tags)
        return fix_response(results)

    async def _resolve_object(self, study_uid: str, sop_uid: str) -> Path:
        """Map validated identifiers to an existing archive file.

        Raises:
            InvalidPathError: If the path escapes the storage root
            DicomFileNotFoundError: If no file exists there
        """
        path = resolve_safe_path(self._storage_root, study_uid, sop_uid)
        if path is None:
            raise InvalidPathError()
        if not await asyncio.to_thread(path.is_file):
            raise DicomFileNotFoundError(path)
        return path

    async def retrieve_frames(
        self, study_uid: str, series_uid: str, sop_uid: str, frames: str
    ) -> tuple[Iterator[bytes], str]:
        """WADO-RS: Pixel data of an instance as a multipart body.

        The requested frame list is accepted but not used to slice the pixel
        data; the whole Pixel Data element is returned as a single part.

        Args:
            study_uid: Study Instance UID
            series_uid: Series Instance UID
            sop_uid: SOP Instance UID
            frames: Frame list from the request path

        Returns:
            Tuple of (body chunks, Content-Type header)

        Raises:
            InvalidUidError: If any identifier is malformed
            InvalidPathError: If the resolved path escapes the storage root
            DicomFileNotFoundError: If the object is not in the archive
            TranscodeError: If the uncompressed copy cannot be produced
            ReadError: If the pixel data cannot be extracted
        """
        validate_uids(study_uid, series_uid, sop_uid)
        path = await self._resolve_object(study_uid, sop_uid)

        cached = await self._cache.get_or_transcode(path, path.parent, FRAME_TRANSFER_SYNTAX)
        pixel_data = await asyncio.to_thread(extract_pixel_data, cached)

        content_location = f"/studies/{study_uid}/series/{series_uid}/instances/{sop_uid}"
        boundary = new_boundary()
        logger.debug(
            f"WADO-RS frames {frames}: {len(pixel_data)} bytes for instance {sop_uid}"
        )
        return (
            build_multipart_parts(pixel_data, content_location, boundary),
            multipart_content_type(boundary),
        )

    async def retrieve_object(
        self, study_uid: str | None, series_uid: str | None, object_uid: str | None
    ) -> bytes:
        """WADO-URI: Whole object, transcoded to the configured transfer syntax.

        Args:
            study_uid: ``studyUID`` query parameter
            series_uid: ``seriesUID`` query parameter
            object_uid: ``objectUID`` query parameter

        Returns:
            Raw file bytes

        Raises:
            MissingParametersError: If any parameter is absent or empty
            InvalidUidError: If any identifier is malformed
            InvalidPathError: If the resolved path escapes the storage root
            DicomFileNotFoundError: If the object is not in the archive
            TranscodeError: If the transcoded copy cannot be produced
            ReadError: If the cached copy cannot be read
        """
        if not study_uid or not series_uid or not object_uid:
            raise MissingParametersError()
        validate_uids(study_uid, series_uid, object_uid)
        path = await self._resolve_object(study_uid, object_uid)

        cached = await self._cache.get_or_transcode(path, path.parent, self._transfer_syntax)
        try:
            return await asyncio.to_thread(cached.read_bytes)
        except OSError as e:
            raise ReadError(f"Cannot read {cached}: {e}") from e
