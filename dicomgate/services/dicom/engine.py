"""Async protocol engine consumed by the DICOMweb gateway."""

import asyncio
from typing import Protocol

from dicomgate.services.dicom.models import (
    SUCCESS_CODE,
    AssociationConfig,
    DicomNode,
    FindRequest,
    ResultEnvelope,
    TranscodeRequest,
)
from dicomgate.services.dicom.operations import DicomOperations
from dicomgate.utils.logger import logger


class DimseEngine(Protocol):
    """Narrow contract of the protocol engine.

    Each call resolves exactly once with a JSON-encoded envelope whose ``code``
    is 0 on success.
    """

    async def find(self, request: FindRequest) -> str: ...

    async def transcode(self, request: TranscodeRequest) -> str: ...

    async def echo(self) -> str: ...


class PynetdicomEngine:
    """Protocol engine backed by pynetdicom (C-FIND, C-ECHO) and pydicom (transcoding).

    Blocking work runs in worker threads via asyncio.to_thread().
    """

    def __init__(
        self,
        calling_aet: str,
        peer: DicomNode,
        max_pdu: int = 16384,
        timeout: float = 30.0,
    ):
        """Initialize the engine.

        Args:
            calling_aet: Calling AE title
            peer: Archive node queried by find and echo
            max_pdu: Maximum PDU size (0 for unlimited)
            timeout: Association timeout
        """
        self.calling_aet = calling_aet
        self.peer = peer
        self.max_pdu = max_pdu
        self.timeout = timeout
        self._operations = DicomOperations(calling_aet=calling_aet, max_pdu=max_pdu)

    def _create_association_config(self) -> AssociationConfig:
        return AssociationConfig(
            calling_aet=self.calling_aet,
            called_aet=self.peer.aet,
            peer_host=self.peer.host,
            peer_port=self.peer.port,
            max_pdu=self.max_pdu,
            timeout=self.timeout,
        )

    async def find(self, request: FindRequest) -> str:
        """Run a C-FIND against the archive.

        Args:
            request: Level-scoped find request

        Returns:
            JSON-encoded find envelope
        """
        logger.debug(
            f"C-FIND {request.level.value} on {self.peer.aet}@{self.peer.host}:{self.peer.port}"
        )
        return await asyncio.to_thread(
            self._operations.find, self._create_association_config(), request
        )

    async def transcode(self, request: TranscodeRequest) -> str:
        """Re-encode ``request.source`` into ``request.target``.

        Args:
            request: Source, target and transfer syntax

        Returns:
            JSON-encoded result envelope
        """
        logger.debug(f"Transcoding {request.source} to {request.transfer_syntax}")
        return await asyncio.to_thread(self._operations.transcode, request)

    async def echo(self) -> str:
        """Verify connectivity to the archive with C-ECHO.

        Returns:
            JSON-encoded result envelope
        """
        return await asyncio.to_thread(self._operations.echo, self._create_association_config())


async def verify_peer(engine: DimseEngine) -> bool:
    """Run C-ECHO against the archive and log the outcome.

    Args:
        engine: Protocol engine to verify

    Returns:
        True if the archive answered with success
    """
    try:
        raw = await engine.echo()
        envelope = ResultEnvelope.model_validate_json(raw)
    except Exception as e:
        logger.error(f"C-ECHO failed: {e}")
        return False

    if envelope.code != SUCCESS_CODE:
        logger.error(f"C-ECHO failed with code {envelope.code}: {envelope.message}")
        return False

    logger.info("C-ECHO to archive succeeded")
    return True
