"""DICOM protocol engine, tag dictionary and storage SCP."""

from dicomgate.services.dicom.engine import DimseEngine, PynetdicomEngine, verify_peer
from dicomgate.services.dicom.models import (
    DicomNode,
    DicomRecord,
    FindRequest,
    FindTag,
    QueryRetrieveLevel,
    TranscodeRequest,
)
from dicomgate.services.dicom.scp import StoreScp

__all__ = [
    "DicomNode",
    "DicomRecord",
    "DimseEngine",
    "FindRequest",
    "FindTag",
    "PynetdicomEngine",
    "QueryRetrieveLevel",
    "StoreScp",
    "TranscodeRequest",
    "verify_peer",
]
