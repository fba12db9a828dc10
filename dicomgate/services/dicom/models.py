"""Pydantic models for the protocol engine boundary."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

DicomRecord = dict[str, dict[str, Any]]

SUCCESS_CODE = 0


class QueryRetrieveLevel(str, Enum):
    """DICOM Query/Retrieve levels."""

    STUDY = "STUDY"
    SERIES = "SERIES"
    IMAGE = "IMAGE"


class FindTag(BaseModel):
    """One key of a C-FIND identifier.

    A present ``value`` is a matching key, ``None`` a requested return key.
    """

    key: str
    value: str | None = None


class FindRequest(BaseModel):
    """Level-scoped C-FIND request; the first tag is always the query/retrieve level."""

    level: QueryRetrieveLevel
    tags: list[FindTag] = Field(default_factory=list)

    def match_keys(self) -> dict[str, str]:
        """Return the matching keys as a tag code to value mapping."""
        return {t.key: t.value for t in self.tags if t.value is not None}

    def return_keys(self) -> list[str]:
        """Return the tag codes requested without a matching value."""
        return [t.key for t in self.tags if t.value is None]


class TranscodeRequest(BaseModel):
    """Request to re-encode one object into another transfer syntax."""

    source: Path
    target: Path
    transfer_syntax: str


class FindEnvelope(BaseModel):
    """Engine reply to a find; ``container`` is a JSON-encoded array of records."""

    code: int
    container: str | None = None
    message: str | None = None


class ResultEnvelope(BaseModel):
    """Engine reply to transcode and echo operations."""

    code: int
    message: str | None = None


DicomRecordList = TypeAdapter(list[DicomRecord])


class DicomNode(BaseModel):
    """DICOM node configuration."""

    aet: str
    host: str
    port: int


class AssociationConfig(BaseModel):
    """Configuration for DICOM association."""

    calling_aet: str
    called_aet: str
    peer_host: str
    peer_port: int
    max_pdu: int = 16384
    timeout: float = 30.0
