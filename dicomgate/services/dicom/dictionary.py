"""Lookup between DICOM keywords, 8-hex-digit tag codes, and value representations.

Backed by pydicom's standard data dictionary, which is loaded once per process
and never mutated here.
"""

import re

from pydicom.datadict import dictionary_has_tag, dictionary_VR, tag_for_keyword
from pydicom.tag import BaseTag, Tag

_TAG_CODE = re.compile(r"^[0-9A-Fa-f]{8}$")


def _resolve(name: str) -> BaseTag | None:
    if not name:
        # pydicom maps the empty keyword to a real (retired-name) tag
        return None
    if _TAG_CODE.match(name):
        tag = Tag(int(name, 16))
    else:
        value = tag_for_keyword(name)
        if value is None:
            return None
        tag = Tag(value)
    return tag if dictionary_has_tag(tag) else None


def tag_code(tag: int) -> str:
    """Format a tag as the 8-hex-digit code used as a DICOM JSON key."""
    return f"{tag:08X}"


def find_dicom_name(name: str) -> str | None:
    """Resolve a keyword (``PatientName``) or tag code (``00100010``) to a tag code.

    Args:
        name: DICOM keyword or 8-hex-digit tag code

    Returns:
        Upper-case tag code, or None if the name is not in the dictionary
    """
    tag = _resolve(name)
    return tag_code(tag) if tag is not None else None


def find_vr(name: str) -> str:
    """Return the value representation for a keyword or tag code.

    Ambiguous dictionary entries such as ``US or SS`` resolve to their first VR.

    Args:
        name: DICOM keyword or 8-hex-digit tag code

    Returns:
        Two-letter VR, or an empty string for unknown names
    """
    tag = _resolve(name)
    if tag is None:
        return ""
    return dictionary_VR(tag).split(" or ")[0]
