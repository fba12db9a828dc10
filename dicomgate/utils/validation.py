"""
Identifier and path validation for client-supplied DICOM UIDs.

Every identifier that reaches the filesystem or the protocol engine must pass
``is_valid_uid`` first, and every path built from identifiers must pass
``resolve_safe_path``.
"""

import os
from pathlib import Path

MAX_UID_LENGTH = 64
_UID_CHARS = frozenset("0123456789.")


def is_valid_uid(uid: object) -> bool:
    """Check that a value is a well-formed DICOM UID.

    Args:
        uid: Candidate identifier, of any type

    Returns:
        True if ``uid`` is a string of 1-64 characters made only of digits and dots
    """
    if not isinstance(uid, str):
        return False
    return 0 < len(uid) <= MAX_UID_LENGTH and all(ch in _UID_CHARS for ch in uid)


def resolve_safe_path(storage_root: str | Path, *segments: str) -> Path | None:
    """Join segments onto a storage root, refusing anything that escapes it.

    Args:
        storage_root: Root directory of the archive
        *segments: Path components appended to the root

    Returns:
        Canonical path if it is the root itself or lies beneath it, otherwise None
    """
    root = os.path.realpath(storage_root)
    resolved = os.path.realpath(os.path.join(root, *segments))
    if resolved != root and not resolved.startswith(root + os.sep):
        return None
    return Path(resolved)
