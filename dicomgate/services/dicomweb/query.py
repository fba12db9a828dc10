"""QIDO-RS query translation: web query parameters to level-scoped C-FIND requests.

Find failures never raise. A non-success envelope, an unparseable reply or a
timed-out engine call all yield an empty result so search endpoints stay 200;
the cause is logged instead.
"""

import asyncio
from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from dicomgate.services.dicom.dictionary import find_dicom_name
from dicomgate.services.dicom.engine import DimseEngine
from dicomgate.services.dicom.models import (
    SUCCESS_CODE,
    DicomRecord,
    DicomRecordList,
    FindEnvelope,
    FindRequest,
    FindTag,
    QueryRetrieveLevel,
)
from dicomgate.services.dicom.tags import QUERY_RETRIEVE_LEVEL_TAG
from dicomgate.utils.logger import logger

OFFSET_PARAM = "offset"
INCLUDEFIELD_PARAM = "includefield"
RESERVED_PARAMS = frozenset({OFFSET_PARAM, INCLUDEFIELD_PARAM})


def parse_offset(value: str | None) -> int:
    """Parse the ``offset`` parameter; anything non-numeric or negative counts as 0."""
    if value is None:
        return 0
    try:
        offset = int(value.strip())
    except ValueError:
        return 0
    return max(offset, 0)


class _RequestBuilder:
    """Accumulates find tags in insertion order, one entry per tag code."""

    def __init__(self, level: QueryRetrieveLevel):
        self.level = level
        self._tags: dict[str, FindTag] = {}
        self.add_match(QUERY_RETRIEVE_LEVEL_TAG, level.value)

    def add_return(self, key: str) -> None:
        self._tags.setdefault(key, FindTag(key=key))

    def add_match(self, key: str, value: str) -> None:
        existing = self._tags.get(key)
        if existing is None:
            self._tags[key] = FindTag(key=key, value=value)
        else:
            existing.value = value

    def build(self) -> FindRequest:
        return FindRequest(level=self.level, tags=list(self._tags.values()))


def build_find_request(
    level: QueryRetrieveLevel,
    query_params: Mapping[str, str],
    extra_tags: Iterable[str],
) -> FindRequest:
    """Translate web query parameters into a find request.

    Args:
        level: Query/retrieve level
        query_params: Web query parameters; keys are keywords or tag codes
        extra_tags: Tag codes always requested as return keys

    Returns:
        Find request whose first tag is the query/retrieve level
    """
    builder = _RequestBuilder(level)

    for tag in extra_tags:
        builder.add_return(tag)

    for key, value in query_params.items():
        if key in RESERVED_PARAMS:
            continue
        tag = find_dicom_name(key)
        if tag is None:
            logger.debug(f"Ignoring unknown query parameter {key!r}")
            continue
        builder.add_match(tag, value)

    for name in query_params.get(INCLUDEFIELD_PARAM, "").split(","):
        name = name.strip()
        if not name:
            continue
        tag = find_dicom_name(name)
        if tag is not None:
            builder.add_return(tag)

    return builder.build()


def parse_find_reply(raw: str) -> list[DicomRecord]:
    """Parse an engine find envelope into records.

    Args:
        raw: JSON-encoded envelope from the engine

    Returns:
        Parsed records, or an empty list on any failure
    """
    try:
        envelope = FindEnvelope.model_validate_json(raw)
    except ValidationError as e:
        logger.error(f"Invalid find reply from engine: {e}")
        return []

    if envelope.code != SUCCESS_CODE:
        logger.error(f"Find failed with code {envelope.code}: {envelope.message}")
        return []

    if not envelope.container:
        logger.error("Find reply has no result container")
        return []

    try:
        return DicomRecordList.validate_json(envelope.container)
    except ValidationError as e:
        logger.error(f"Invalid result container in find reply: {e}")
        return []


class FindOrchestrator:
    """Runs level-scoped C-FIND requests through the protocol engine."""

    def __init__(self, engine: DimseEngine, timeout: float = 30.0):
        """Initialize the orchestrator.

        Args:
            engine: Protocol engine
            timeout: Seconds to wait for the engine reply
        """
        self._engine = engine
        self._timeout = timeout

    async def find(
        self,
        level: QueryRetrieveLevel,
        query_params: Mapping[str, str],
        extra_tags: Iterable[str],
    ) -> list[DicomRecord]:
        """Search the archive.

        Args:
            level: Query/retrieve level
            query_params: Web query parameters, including optional ``offset``
                and ``includefield``
            extra_tags: Tag codes always requested as return keys

        Returns:
            Matching records after dropping the first ``offset``; empty on failure
        """
        request = build_find_request(level, query_params, extra_tags)

        try:
            raw = await asyncio.wait_for(self._engine.find(request), timeout=self._timeout)
        except TimeoutError:
            logger.error(f"Find at {level.value} level timed out after {self._timeout}s")
            return []
        except Exception as e:
            logger.error(f"Find at {level.value} level failed: {e}")
            return []

        results = parse_find_reply(raw)
        offset = parse_offset(query_params.get(OFFSET_PARAM))
        logger.info(f"Find {level.value}: {len(results)} results, offset {offset}")
        return results[offset:]
