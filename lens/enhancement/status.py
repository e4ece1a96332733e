"""Parsing of enhancement status-check responses."""

import math
from typing import Any, Optional

from lens.core.models import EnhancementStatus
from lens.retrieval.unwrap import unwrap_record

# model field -> accepted response keys
COUNTER_FIELDS: dict[str, tuple[str, ...]] = {
    "total_units": ("total_chunks", "totalChunks"),
    "terminated_units": ("terminated_chunks", "terminatedChunks"),
    "succeeded_units": ("success_chunks", "successChunks"),
    "failed_units": ("failed_chunks", "failedChunks"),
    "pending_units": ("pending_chunks", "pendingChunks"),
    "processing_units": ("processing_chunks", "processingChunks"),
    "published_units": ("embedded_chunks", "embeddedChunks"),
}
ALL_TERMINATED_KEYS = ("all_terminated", "allTerminated")
TRUE_STRINGS = frozenset({"true", "t"})


def to_int(value: Any) -> int:
    """Lenient integer parse; anything unusable is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except (ValueError, OverflowError):
            return 0
    return 0


def to_flag(value: Any) -> bool:
    if value is True:
        return True
    return isinstance(value, str) and value.strip().lower() in TRUE_STRINGS


def _first_present(record: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def parse_status(data: Any) -> Optional[EnhancementStatus]:
    """Parse a status-check body into counters, or None if it is not a record.

    Absent counters are 0. ``all_terminated`` is also derived when the
    backend reports ``terminated >= total > 0``.
    """
    if isinstance(data, list):
        if not data:
            return None
        data = data[0]
    record = unwrap_record(data)
    if not isinstance(record, dict):
        return None

    counters = {
        field: max(to_int(_first_present(record, keys)), 0)
        for field, keys in COUNTER_FIELDS.items()
    }
    total = counters["total_units"]
    terminated = counters["terminated_units"]
    all_terminated = to_flag(_first_present(record, ALL_TERMINATED_KEYS)) or (
        total > 0 and terminated >= total
    )
    return EnhancementStatus(**counters, all_terminated=all_terminated)
