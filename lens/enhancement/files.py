"""
Notebook file list mapping and enhancement lifecycle classification.

The notebook-status backend returns file records in several envelopes and
with free-form status strings; this maps them onto NotebookFile and
decides which lifecycle bucket each file belongs to.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from lens.core.models import EnhancementState, FileStatus, JobProgress, NotebookFile
from lens.enhancement.status import to_int
from lens.retrieval.unwrap import unwrap_record

logger = logging.getLogger(__name__)

LIST_KEYS = ("documents", "data", "files")
ID_KEYS = ("job_id", "file_id", "notebook_id", "id")

COMPLETED_KEYWORDS = ("completed", "success", "finished", "done", "active", "ready")
PROCESSING_KEYWORDS = ("processing", "running")
ERROR_KEYWORDS = ("error", "failed")

TABULAR_EXTENSIONS = (".csv", ".xlsx", ".xls", ".tsv", ".ods", ".numbers")
TABULAR_TYPES = ("csv", "excel", "spreadsheet", "tabular", "xlsx", "xls", "tsv", "ods")


def _file_records(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in LIST_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
    return [payload]


def map_status(raw_status: Any) -> FileStatus:
    """Map a free-form backend status string onto FileStatus."""
    status = str(raw_status or "").lower()
    if any(k in status for k in COMPLETED_KEYWORDS):
        return FileStatus.COMPLETED
    if any(k in status for k in PROCESSING_KEYWORDS):
        return FileStatus.PROCESSING
    if any(k in status for k in ERROR_KEYWORDS):
        return FileStatus.ERROR
    return FileStatus.PENDING


def _first(record: dict, *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else to_int(value)


def map_file(record: dict) -> NotebookFile:
    """Build a NotebookFile from one backend record."""
    return NotebookFile(
        id=str(_first(record, "job_id", "file_id", "id") or uuid.uuid4().hex[:12]),
        job_id=_optional_str(_first(record, "job_id", "jobId")),
        file_id=_optional_str(_first(record, "file_id", "fileId")),
        name=str(_first(record, "file_name", "name", "notebook_title") or "Untitled Document"),
        type=str(_first(record, "file_type", "type") or "document"),
        status=map_status(record.get("status")),
        size=str(record.get("size") or "Unknown"),
        added=str(record.get("created_at") or datetime.now(timezone.utc).isoformat()),
        updated=_optional_str(record.get("updated_at")),
        chunk_status=_optional_str(_first(record, "chunk_status", "chunkStatus")),
        total_chunks=_optional_int(_first(record, "total_chunks", "totalChunks")),
        completed_chunks=_optional_int(_first(record, "completed_chunks", "completedChunks")),
    )


def map_files(payload: Any) -> list[NotebookFile]:
    """Map a notebook-status response onto files, newest first.

    Records without any identifier are dropped.
    """
    files = []
    for item in _file_records(payload):
        record = unwrap_record(item)
        if not isinstance(record, dict) or not _first(record, *ID_KEYS):
            continue
        files.append(map_file(record))

    files.sort(key=lambda f: f.updated or f.added, reverse=True)
    logger.debug(f"[Files] Mapped {len(files)} files")
    return files


def is_tabular(file: NotebookFile) -> bool:
    """Tabular files are queried through SQL and never enhanced."""
    file_type = file.type.lower()
    name = file.name.lower()
    return name.endswith(TABULAR_EXTENSIONS) or any(t in file_type for t in TABULAR_TYPES)


def enhancement_state(progress: Optional[JobProgress]) -> EnhancementState:
    """Classify a file by its last known enhancement progress."""
    if progress is None or progress.total_units == 0:
        return EnhancementState.NOT_ENHANCED
    if progress.is_polling:
        return EnhancementState.ENHANCING
    if progress.published_units >= progress.total_units:
        return EnhancementState.PUBLISHED
    if progress.all_terminated and progress.succeeded_units > 0:
        return EnhancementState.ENHANCED
    return EnhancementState.NOT_ENHANCED
