"""On-disk cache of transcoded objects, partitioned by transfer syntax.

Layout: ``<containing_dir>/.cache/<transfer syntax, dots as underscores>/<file name>``.
An entry that exists is trusted as-is; it is never re-verified or expired here.
"""

import asyncio
from pathlib import Path

from pydantic import ValidationError

from dicomgate.exceptions.domain import TranscodeError
from dicomgate.services.dicom.engine import DimseEngine
from dicomgate.services.dicom.models import SUCCESS_CODE, ResultEnvelope, TranscodeRequest
from dicomgate.utils.logger import logger

CACHE_DIR_NAME = ".cache"


def cache_path(input_file: Path, containing_dir: Path, transfer_syntax: str) -> Path:
    """Return the cache location of ``input_file`` re-encoded as ``transfer_syntax``."""
    return containing_dir / CACHE_DIR_NAME / transfer_syntax.replace(".", "_") / input_file.name


def parse_transcode_reply(raw: str) -> None:
    """Check an engine transcode envelope.

    Args:
        raw: JSON-encoded envelope from the engine

    Raises:
        TranscodeError: If the reply is empty, unparseable, or reports failure
    """
    try:
        envelope = ResultEnvelope.model_validate_json(raw)
    except ValidationError:
        raise TranscodeError("invalid result received") from None

    if envelope.code != SUCCESS_CODE:
        raise TranscodeError(envelope.message or f"transcoding failed with code {envelope.code}")


class TranscodeCache:
    """Returns a transcoded copy of an object, transcoding at most once per key at a time.

    Concurrent requests for the same (file, transfer syntax) wait on a per-key
    lock and then find the file already cached.
    """

    def __init__(self, engine: DimseEngine, timeout: float = 120.0):
        """Initialize the cache.

        Args:
            engine: Protocol engine performing the transcode
            timeout: Seconds to wait for one transcode
        """
        self._engine = engine
        self._timeout = timeout
        # Entries live only while some request holds or awaits the lock
        self._locks: dict[Path, asyncio.Lock] = {}
        self._lock_users: dict[Path, int] = {}

    def _acquire_lock(self, key: Path) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        return self._locks[key]

    def _release_lock(self, key: Path) -> None:
        remaining = self._lock_users.get(key, 0) - 1
        if remaining > 0:
            self._lock_users[key] = remaining
        else:
            self._lock_users.pop(key, None)
            self._locks.pop(key, None)

    async def get_or_transcode(
        self, input_file: Path, containing_dir: Path, transfer_syntax: str
    ) -> Path:
        """Return the cached transcoded file, creating it on a miss.

        Args:
            input_file: Object to transcode
            containing_dir: Directory whose ``.cache`` subtree holds the result
            transfer_syntax: Target transfer syntax UID

        Returns:
            Path of the cached file

        Raises:
            TranscodeError: If the engine fails, times out or replies garbage
        """
        cached_file = cache_path(input_file, containing_dir, transfer_syntax)

        # Existence is the only validity signal
        if await asyncio.to_thread(cached_file.exists):
            logger.debug(f"Transcode cache hit for {cached_file}")
            return cached_file

        lock = self._acquire_lock(cached_file)
        try:
            async with lock:
                # Double-check after acquiring lock
                if await asyncio.to_thread(cached_file.exists):
                    logger.debug(f"Transcode cache hit for {cached_file} (after lock)")
                    return cached_file
                await self._transcode(input_file, cached_file, transfer_syntax)
                return cached_file
        finally:
            self._release_lock(cached_file)

    async def _transcode(self, input_file: Path, cached_file: Path, transfer_syntax: str) -> None:
        await asyncio.to_thread(cached_file.parent.mkdir, parents=True, exist_ok=True)

        logger.info(f"Cache miss, transcoding {input_file} to {transfer_syntax}")
        request = TranscodeRequest(
            source=input_file, target=cached_file, transfer_syntax=transfer_syntax
        )
        try:
            raw = await asyncio.wait_for(self._engine.transcode(request), timeout=self._timeout)
        except TimeoutError:
            raise TranscodeError(
                f"transcoding {input_file.name} timed out after {self._timeout}s"
            ) from None

        parse_transcode_reply(raw)

    async def shutdown(self) -> None:
        """Drop per-key locks."""
        self._locks.clear()
        self._lock_users.clear()
        logger.info("Transcode cache shutdown complete")
