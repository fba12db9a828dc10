"""Shared fixtures: synthetic DICOM files and a scriptable protocol engine."""

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
from pydicom import Dataset
from pydicom.dataset import FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, SecondaryCaptureImageStorage

from dicomgate.services.dicom.models import FindRequest, TranscodeRequest
from dicomgate.services.dicom.operations import DicomOperations

STUDY_UID = "1.2.826.0.1.3680043.8.498.1"
SERIES_UID = "1.2.826.0.1.3680043.8.498.1.1"
SOP_UID = "1.2.826.0.1.3680043.8.498.1.1.1"

PIXEL_BYTES = bytes(range(16))


def make_dataset(sop_uid: str = SOP_UID, instance_number: int = 1) -> Dataset:
    """Build a 4x4 8-bit monochrome secondary capture instance."""
    meta = FileMetaDataset()
    meta.MediaStorageSOPClassUID = SecondaryCaptureImageStorage
    meta.MediaStorageSOPInstanceUID = sop_uid
    meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = Dataset()
    ds.file_meta = meta
    ds.SOPClassUID = SecondaryCaptureImageStorage
    ds.SOPInstanceUID = sop_uid
    ds.StudyInstanceUID = STUDY_UID
    ds.SeriesInstanceUID = SERIES_UID
    ds.InstanceNumber = instance_number
    ds.Modality = "OT"
    ds.Rows = 4
    ds.Columns = 4
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = "MONOCHROME2"
    ds.BitsAllocated = 8
    ds.BitsStored = 8
    ds.HighBit = 7
    ds.PixelRepresentation = 0
    ds.PixelData = PIXEL_BYTES
    return ds


def write_dicom(path: Path, ds: Dataset | None = None) -> Path:
    """Save a dataset (a default instance if omitted) to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    (ds or make_dataset()).save_as(path, enforce_file_format=True)
    return path


def find_envelope(records: list[dict[str, Any]], code: int = 0) -> str:
    """Encode records the way the engine answers a find."""
    return json.dumps({"code": code, "container": json.dumps(records)})


class FakeEngine:
    """Protocol engine double.

    Finds answer with canned records and remember their requests. Transcodes
    run the real pydicom re-encoding, since that needs no network.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None):
        self.records = records or []
        self.find_requests: list[FindRequest] = []
        self.transcode_requests: list[TranscodeRequest] = []
        self._operations = DicomOperations(calling_aet="TEST")

    async def find(self, request: FindRequest) -> str:
        self.find_requests.append(request)
        return find_envelope(self.records)

    async def transcode(self, request: TranscodeRequest) -> str:
        self.transcode_requests.append(request)
        return await asyncio.to_thread(self._operations.transcode, request)

    async def echo(self) -> str:
        return json.dumps({"code": 0})


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Empty archive root."""
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def stored_instance(storage_root: Path) -> Path:
    """A single instance filed at ``<root>/<study>/<sop>``."""
    return write_dicom(storage_root / STUDY_UID / SOP_UID)


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Engine double with no canned find records."""
    return FakeEngine()
