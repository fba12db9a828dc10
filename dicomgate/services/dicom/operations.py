"""Synchronous DICOM operations using pynetdicom and pydicom.

Each operation answers with a JSON-encoded envelope (``{"code": ..., ...}``)
instead of raising, so callers see one uniform reply shape.
"""

import json
import os
from typing import Any
from uuid import uuid4

import pydicom
from pydicom import Dataset
from pydicom.tag import Tag
from pydicom.uid import UID, ImplicitVRLittleEndian
from pynetdicom import AE  # type: ignore[import-not-found]
from pynetdicom.sop_class import (  # type: ignore[import-not-found,attr-defined]
    StudyRootQueryRetrieveInformationModelFind,
    Verification,
)

from dicomgate.services.dicom.dictionary import find_vr
from dicomgate.services.dicom.models import (
    SUCCESS_CODE,
    AssociationConfig,
    FindEnvelope,
    FindRequest,
    ResultEnvelope,
    TranscodeRequest,
)
from dicomgate.utils.logger import logger

FAILURE_CODE = 1
ASSOCIATION_FAILED_CODE = 2

_INT_VRS = frozenset({"US", "SS", "UL", "SL", "UV", "SV", "AT"})
_FLOAT_VRS = frozenset({"FL", "FD"})


def _coerce(vr: str, value: str | None) -> Any:
    """Convert a textual matching value to the Python type pydicom expects for ``vr``."""
    if value is None or value == "":
        return None
    if vr in _INT_VRS:
        return int(value)
    if vr in _FLOAT_VRS:
        return float(value)
    return value


def build_find_dataset(request: FindRequest) -> Dataset:
    """Build the C-FIND identifier for a request.

    Args:
        request: Level-scoped find request

    Returns:
        DICOM dataset with one element per request tag
    """
    ds = Dataset()
    for item in request.tags:
        vr = find_vr(item.key) or "UN"
        ds.add_new(Tag(int(item.key, 16)), vr, _coerce(vr, item.value))
    return ds


class DicomOperations:
    """Synchronous DICOM operations wrapper for pynetdicom."""

    def __init__(self, calling_aet: str, max_pdu: int = 16384):
        """Initialize DICOM operations.

        Args:
            calling_aet: Calling AE title
            max_pdu: Maximum PDU size (0 for unlimited)
        """
        self.calling_aet = calling_aet
        self.max_pdu = max_pdu

    def _create_ae(self, timeout: float) -> AE:
        """Create Application Entity for query and verification.

        Args:
            timeout: Network, ACSE and DIMSE timeout in seconds

        Returns:
            Configured AE instance
        """
        ae = AE(ae_title=self.calling_aet)
        ae.maximum_pdu_size = self.max_pdu
        ae.acse_timeout = timeout
        ae.dimse_timeout = timeout
        ae.network_timeout = timeout

        ae.add_requested_context(StudyRootQueryRetrieveInformationModelFind)
        ae.add_requested_context(Verification)

        return ae

    def find(self, config: AssociationConfig, request: FindRequest) -> str:
        """Execute C-FIND and collect identifiers as DICOM JSON.

        Args:
            config: Association configuration
            request: Find request

        Returns:
            JSON-encoded FindEnvelope
        """
        try:
            ds = build_find_dataset(request)
        except (TypeError, ValueError) as e:
            return FindEnvelope(code=FAILURE_CODE, message=f"Invalid query: {e}").model_dump_json()

        ae = self._create_ae(config.timeout)
        assoc = ae.associate(config.peer_host, config.peer_port, ae_title=config.called_aet)

        if not assoc.is_established:
            logger.error(f"Failed to establish association with {config.called_aet}")
            return FindEnvelope(
                code=ASSOCIATION_FAILED_CODE,
                message=f"Failed to establish association with {config.called_aet}",
            ).model_dump_json()

        try:
            records: list[dict[str, Any]] = []
            responses = assoc.send_c_find(ds, StudyRootQueryRetrieveInformationModelFind)

            for status, identifier in responses:
                if not status:
                    # Connection timed out, was aborted or received an invalid response
                    return FindEnvelope(
                        code=ASSOCIATION_FAILED_CODE, message="C-FIND aborted"
                    ).model_dump_json()

                match status.Status:
                    case 0xFF00 | 0xFF01:
                        if identifier:
                            records.append(identifier.to_json_dict(suppress_invalid_tags=True))
                    case 0x0000:
                        logger.debug(f"C-FIND completed successfully, {len(records)} matches")
                    case _:
                        logger.warning(f"C-FIND failed with status 0x{status.Status:04x}")
                        return FindEnvelope(
                            code=int(status.Status),
                            message=f"C-FIND failed with status 0x{status.Status:04x}",
                        ).model_dump_json()

            return FindEnvelope(code=SUCCESS_CODE, container=json.dumps(records)).model_dump_json()

        finally:
            assoc.release()

    def echo(self, config: AssociationConfig) -> str:
        """Execute C-ECHO against the peer.

        Args:
            config: Association configuration

        Returns:
            JSON-encoded ResultEnvelope
        """
        ae = self._create_ae(config.timeout)
        assoc = ae.associate(config.peer_host, config.peer_port, ae_title=config.called_aet)

        if not assoc.is_established:
            return ResultEnvelope(
                code=ASSOCIATION_FAILED_CODE,
                message=f"Failed to establish association with {config.called_aet}",
            ).model_dump_json()

        try:
            status = assoc.send_c_echo()
            if status and status.Status == 0x0000:
                return ResultEnvelope(code=SUCCESS_CODE).model_dump_json()
            return ResultEnvelope(
                code=FAILURE_CODE,
                message=f"C-ECHO status: {f'0x{status.Status:04x}' if status else 'none'}",
            ).model_dump_json()
        finally:
            assoc.release()

    def transcode(self, request: TranscodeRequest) -> str:
        """Re-encode a stored object into the requested transfer syntax.

        The result is written next to the target and renamed onto it, so readers
        never observe a partially written file.

        Args:
            request: Source, target and transfer syntax

        Returns:
            JSON-encoded ResultEnvelope
        """
        tmp_path = request.target.with_name(f".{request.target.name}.{uuid4().hex}.tmp")
        try:
            ds = pydicom.dcmread(request.source, force=True)
            _reencode(ds, UID(request.transfer_syntax))
            target_uid = ds.file_meta.TransferSyntaxUID
            ds.save_as(
                tmp_path,
                implicit_vr=target_uid.is_implicit_VR,
                little_endian=target_uid.is_little_endian,
                enforce_file_format=True,
            )
            os.replace(tmp_path, request.target)
        except Exception as e:
            logger.error(f"Transcoding {request.source} to {request.transfer_syntax} failed: {e}")
            tmp_path.unlink(missing_ok=True)
            return ResultEnvelope(code=FAILURE_CODE, message=str(e)).model_dump_json()

        return ResultEnvelope(code=SUCCESS_CODE).model_dump_json()


def _reencode(ds: Dataset, target: UID) -> None:
    """Convert ``ds`` in place so its pixel data is encoded as ``target``."""
    ds.ensure_file_meta()
    meta = ds.file_meta
    if "MediaStorageSOPClassUID" not in meta and "SOPClassUID" in ds:
        meta.MediaStorageSOPClassUID = ds.SOPClassUID
    if "MediaStorageSOPInstanceUID" not in meta and "SOPInstanceUID" in ds:
        meta.MediaStorageSOPInstanceUID = ds.SOPInstanceUID

    current = UID(meta.get("TransferSyntaxUID", ImplicitVRLittleEndian))
    if current == target:
        meta.TransferSyntaxUID = current
        return

    if current.is_compressed and "PixelData" in ds:
        ds.decompress()
    if target.is_compressed:
        ds.compress(target)
    else:
        meta.TransferSyntaxUID = target
