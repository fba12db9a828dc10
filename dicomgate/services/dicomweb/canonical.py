"""Default-filling and ordering of DICOM JSON records before they reach the viewer."""

import re
from collections.abc import Iterable
from typing import Any

from dicomgate.services.dicom.models import DicomRecord

INSTANCE_NUMBER_TAG = "00200013"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Viewers (OHIF in particular) expect these even when the modality does not define them
DISPLAY_DEFAULTS: tuple[tuple[str, str, str], ...] = (
    ("00281050", "DS", "100.0"),  # WindowCenter
    ("00281051", "DS", "100.0"),  # WindowWidth
    ("00281052", "DS", "1.0"),  # RescaleIntercept
    ("00281053", "DS", "1.0"),  # RescaleSlope
)


def apply_default(record: DicomRecord, tag: str, vr: str, default_value: Any) -> DicomRecord:
    """Fill ``tag`` with ``default_value`` when the attribute or its ``Value`` is absent or null.

    An empty ``Value`` list counts as present and is kept.

    Args:
        record: DICOM JSON record, modified in place
        tag: Tag code
        vr: Value representation of the default
        default_value: Value stored as the single element of ``Value``

    Returns:
        The same record
    """
    attribute = record.get(tag)
    if attribute is None or attribute.get("Value") is None:
        record[tag] = {"Value": [default_value], "vr": vr}
    return record


def fix_response(records: Iterable[DicomRecord]) -> list[DicomRecord]:
    """Apply display defaults to every record, keeping order and length."""
    fixed: list[DicomRecord] = []
    for record in records:
        for tag, vr, default_value in DISPLAY_DEFAULTS:
            apply_default(record, tag, vr, default_value)
        fixed.append(record)
    return fixed


def _instance_number(record: DicomRecord) -> int:
    attribute = record.get(INSTANCE_NUMBER_TAG) or {}
    values = attribute.get("Value") or []
    if not values:
        return 0
    value = values[0]
    if isinstance(value, int | float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def sort_by_instance_number(records: list[DicomRecord]) -> list[DicomRecord]:
    """Stable in-place sort by Instance Number; missing or non-numeric sorts as 0.

    Returns:
        The same list, sorted
    """
    records.sort(key=_instance_number)
    return records
