"""Storage SCP that files incoming C-STORE objects into the archive tree."""

from pathlib import Path
from typing import Any

from pynetdicom import AE, AllStoragePresentationContexts, evt  # type: ignore[import-not-found]
from pynetdicom.sop_class import Verification  # type: ignore[import-not-found,attr-defined]

from dicomgate.utils.logger import logger
from dicomgate.utils.validation import is_valid_uid, resolve_safe_path

STATUS_SUCCESS = 0x0000
STATUS_FAILURE = 0xC000


class StorageHandler:
    """Handler for C-STORE events writing to ``<storage_root>/<study>/<sop>``."""

    def __init__(self, storage_root: Path):
        """Initialize storage handler.

        Args:
            storage_root: Archive root directory
        """
        self.storage_root = storage_root
        storage_root.mkdir(parents=True, exist_ok=True)

    def handle_store(self, event: evt.Event) -> int:
        """Handle C-STORE request.

        Args:
            event: pynetdicom event object

        Returns:
            Status code (0x0000 for success)
        """
        try:
            ds = event.dataset
            ds.file_meta = event.file_meta
        except Exception as e:
            logger.error(f"Error decoding C-STORE dataset: {e}")
            return STATUS_FAILURE

        study_uid = str(ds.get("StudyInstanceUID", ""))
        sop_uid = str(ds.get("SOPInstanceUID", ""))
        if not is_valid_uid(study_uid) or not is_valid_uid(sop_uid):
            logger.warning(f"Rejecting C-STORE with invalid UIDs: {study_uid!r}/{sop_uid!r}")
            return STATUS_FAILURE

        filepath = resolve_safe_path(self.storage_root, study_uid, sop_uid)
        if filepath is None:
            return STATUS_FAILURE

        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            ds.save_as(filepath, enforce_file_format=True)
        except Exception as e:
            logger.error(f"Error storing to disk: {e}")
            return STATUS_FAILURE

        logger.info(f"Stored instance to {filepath}")
        return STATUS_SUCCESS

    def handle_echo(self, event: evt.Event) -> int:  # noqa: ARG002
        """Answer C-ECHO requests."""
        return STATUS_SUCCESS


class StoreScp:
    """Non-blocking pynetdicom storage server."""

    def __init__(
        self, ae_title: str, host: str, port: int, storage_root: Path, max_pdu: int = 16384
    ):
        self.ae_title = ae_title
        self.host = host
        self.port = port
        self.max_pdu = max_pdu
        self.handler = StorageHandler(storage_root)
        self._server: Any = None

    def start(self) -> None:
        """Start listening; a second call is a no-op."""
        if self._server is not None:
            return

        ae = AE(ae_title=self.ae_title)
        ae.maximum_pdu_size = self.max_pdu
        ae.supported_contexts = AllStoragePresentationContexts
        ae.add_supported_context(Verification)

        handlers = [
            (evt.EVT_C_STORE, self.handler.handle_store),
            (evt.EVT_C_ECHO, self.handler.handle_echo),
        ]
        self._server = ae.start_server((self.host, self.port), block=False, evt_handlers=handlers)
        logger.info(f"Store SCP {self.ae_title} listening on {self.host}:{self.port}")

    def stop(self) -> None:
        """Stop the server if running."""
        if self._server is None:
            return
        self._server.shutdown()
        self._server = None
        logger.info("Store SCP stopped")
