"""
Field resolution heuristics for document-like records.

Backends disagree on field names, so each output field is resolved by an
ordered chain of candidate extractors. Every extractor is a pure function
of the record that returns a value or None; the first non-None wins.

    doc = resolve_document_fields({"chunk_text": "...", "rerank_score": 0.8})
"""

import json
import logging
import math
import re
from typing import Any, Callable, Iterable, Optional, Sequence

from lens.core.models import NormalizedDocument
from lens.retrieval.unwrap import unwrap_record

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Source"

PLACEHOLDER_TITLES = frozenset(
    {"blob", "unknown", "undefined", "null", "rag", "object", "[object object]"}
)

SYNTHESIZED_TITLE_KEYS = (
    "enriched_title", "enrichedTitle",
    "generated_title", "generatedTitle",
    "summary_title", "summaryTitle",
)
METADATA_TITLE_KEYS = ("title", "file_title", "doc_title", "name", "file_name")
RECORD_TITLE_KEYS = (
    "file_title", "fileTitle",
    "title",
    "doc_title", "docTitle",
    "name",
    "file_name", "fileName",
    "source",
    "url",
)
SOURCE_PATH_KEYS = ("source", "url", "link")

CONTENT_KEYS = (
    "enriched_text", "enrichedText",
    "enriched_content", "enrichedContent",
    "summary",
    "chunk",
    "chunk_text", "chunkText",
    "content",
    "text",
    "pageContent", "page_content",
    "body",
    "output",
    "result",
)
# Keys never used as the long-string content fallback
IDENTIFIER_KEYS = frozenset({"url", "source", "id", "file_path", "json", "payload"})
# Keys elided from the serialized content fallback, at every depth
SERIALIZE_SKIP_KEYS = frozenset(
    {"embedding", "vectors", "metadata", "json", "payload", "headers", "uuid"}
)
LONG_STRING_MIN = 50

SCORE_KEYS = (
    "relevance",
    "rerank_score", "rerankScore",
    "combined_score", "combinedScore",
    "vector_score", "vectorScore",
    "score",
    "similarity",
)

HEAVY_METADATA_KEYS = frozenset({"metadata", "json", "payload", "embedding", "vectors"})


Extractor = Callable[[dict], Optional[Any]]


# =============================================================================
# Lookup helpers
# =============================================================================


def valid_title(value: Any) -> Optional[str]:
    """Return the trimmed string if it is a usable title, else None."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text.lower() in PLACEHOLDER_TITLES:
        return None
    return text


def find_in(obj: Any, keys: Sequence[str], check: Callable[[Any], Optional[Any]] = valid_title) -> Optional[Any]:
    """Find the first key whose value passes `check`.

    Exact keys are tried first, then a case-insensitive match on the
    record's own keys.
    """
    if not isinstance(obj, dict):
        return None

    for key in keys:
        found = check(obj.get(key))
        if found is not None:
            return found

    lowered = {}
    for key in obj:
        if isinstance(key, str):
            lowered.setdefault(key.strip().lower(), key)
    for key in keys:
        match = lowered.get(key.lower())
        if match is not None:
            found = check(obj[match])
            if found is not None:
                return found
    return None


def first_of(record: dict, extractors: Iterable[Extractor]) -> Optional[Any]:
    """Run extractors in order and return the first non-None result."""
    for extractor in extractors:
        value = extractor(record)
        if value is not None:
            return value
    return None


def _nested_metadata(record: dict) -> dict:
    metadata = record.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


# =============================================================================
# Title
# =============================================================================


def title_from_synthesized(record: dict) -> Optional[str]:
    return find_in(record, SYNTHESIZED_TITLE_KEYS)


def title_from_metadata(record: dict) -> Optional[str]:
    return find_in(record.get("metadata"), METADATA_TITLE_KEYS)


def title_from_record(record: dict) -> Optional[str]:
    return find_in(record, RECORD_TITLE_KEYS)


def title_from_source_path(record: dict) -> Optional[str]:
    source = find_in(record, SOURCE_PATH_KEYS)
    if source is None:
        return None
    return valid_title(re.split(r"[/\\]", source)[-1])


TITLE_CHAIN: tuple[Extractor, ...] = (
    title_from_synthesized,
    title_from_metadata,
    title_from_record,
    title_from_source_path,
)


def resolve_title(record: Any) -> str:
    """Resolve a display title; never returns a placeholder."""
    data = unwrap_record(record)
    if not isinstance(data, dict):
        return UNKNOWN_TITLE
    return first_of(data, TITLE_CHAIN) or UNKNOWN_TITLE


# =============================================================================
# Content
# =============================================================================


def _non_empty_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def content_from_aliases(record: dict) -> Optional[str]:
    for key in CONTENT_KEYS:
        found = _non_empty_string(record.get(key))
        if found is not None:
            return found
    return None


def content_from_long_string(record: dict) -> Optional[str]:
    for key, value in record.items():
        if key in IDENTIFIER_KEYS:
            continue
        if isinstance(value, str) and len(value) > LONG_STRING_MIN:
            return value
    return None


def _strip_internal(node: Any) -> Any:
    if isinstance(node, dict):
        return {
            k: _strip_internal(v) for k, v in node.items() if k not in SERIALIZE_SKIP_KEYS
        }
    if isinstance(node, list):
        return [_strip_internal(v) for v in node]
    return node


def content_from_serialized(record: dict) -> str:
    return json.dumps(_strip_internal(record), indent=2, ensure_ascii=False, default=str)


CONTENT_CHAIN: tuple[Extractor, ...] = (
    content_from_aliases,
    content_from_long_string,
    content_from_serialized,
)


def resolve_content(record: Any) -> str:
    """Resolve the body text of a record."""
    data = unwrap_record(record)
    if not isinstance(data, dict):
        return "" if data is None else str(data)
    return first_of(data, CONTENT_CHAIN)


# =============================================================================
# Score, metadata, url
# =============================================================================


def _numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return float(value)


def resolve_score(record: dict) -> float:
    """First numeric score alias, clamped at 0; 0 means unscored."""
    for key in SCORE_KEYS:
        value = _numeric(record.get(key))
        if value is not None:
            return max(value, 0.0)
    return 0.0


def resolve_metadata(record: dict) -> dict[str, Any]:
    """Record fields with nested metadata merged on top, minus extracted fields."""
    merged = {**record, **_nested_metadata(record)}
    excluded = HEAVY_METADATA_KEYS.union(CONTENT_KEYS, SCORE_KEYS)
    return {k: v for k, v in merged.items() if k not in excluded}


def resolve_url(record: dict) -> Optional[str]:
    metadata = _nested_metadata(record)
    for candidate in (
        metadata.get("source"),
        metadata.get("url"),
        record.get("source"),
        record.get("url"),
    ):
        found = _non_empty_string(candidate)
        if found is not None:
            return found.strip()
    return None


# =============================================================================
# Public entry point
# =============================================================================


def resolve_document_fields(record: Any) -> NormalizedDocument:
    """Normalize one document-like record into a NormalizedDocument.

    Missing fields degrade to defaults; this never raises on odd shapes.
    """
    data = unwrap_record(record)
    if not isinstance(data, dict):
        data = {"content": "" if data is None else str(data)}

    return NormalizedDocument(
        title=resolve_title(data),
        content=resolve_content(data),
        score=resolve_score(data),
        metadata=resolve_metadata(data),
        source_type="file",
        url=resolve_url(data),
    )
