"""
Multi-Query Grouping - bucket documents by the sub-query that found them.

Multi-query strategies fan a question out into generated sub-queries, but
the response envelope is not stable. Shapes are tried in order:

1. A list of ``{query, output|results|data}`` records: one group each.
   A record without a query borrows the tag of its first document.
2. ``{queries: [...]}``: the same algorithm on the nested list.
3. Fallback: discover every document and bucket by its own query tag;
   untagged documents land in DIRECT_MATCH_QUERY.

Repeated query strings keep their first group only.
"""

import logging
from typing import Any, Optional

from lens.core.models import QueryGroup
from lens.retrieval.discovery import DEFAULT_MAX_DEPTH, find_documents
from lens.retrieval.fields import resolve_document_fields
from lens.retrieval.unwrap import unwrap, unwrap_record

logger = logging.getLogger(__name__)

DIRECT_MATCH_QUERY = "Direct Match (No Query)"

QUERY_KEYS = (
    "query",
    "generated_query", "generatedQuery",
    "search_query", "searchQuery",
)
RESULT_KEYS = ("output", "results", "data")


def _query_of(record: dict) -> Optional[str]:
    for key in QUERY_KEYS:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def document_query_tag(record: dict) -> Optional[str]:
    """Query tag carried by a single document (own field, then metadata)."""
    record = unwrap_record(record)
    if not isinstance(record, dict):
        return None
    metadata = record.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    for value in (
        record.get("query"),
        metadata.get("query"),
        record.get("generated_query"),
        record.get("generatedQuery"),
    ):
        if isinstance(value, str) and value.strip():
            return value
    return None


def _results_of(record: dict) -> Any:
    for key in RESULT_KEYS:
        if record.get(key):
            return record[key]
    return None


class _GroupCollector:
    """Ordered query → documents accumulator with first-wins dedup."""

    def __init__(self):
        self.groups: list[QueryGroup] = []
        self._seen: set[str] = set()

    def add(self, query: Optional[str], records: list[dict]) -> None:
        if not query or not records:
            return
        if query in self._seen:
            logger.debug(f"[Grouping] Dropping repeated query group: {query[:80]}")
            return
        self._seen.add(query)
        self.groups.append(
            QueryGroup(query=query, documents=[resolve_document_fields(r) for r in records])
        )


def _group_records(data: list, collector: _GroupCollector, max_depth: int) -> None:
    for item in data:
        record = unwrap_record(item)
        if not isinstance(record, dict):
            continue
        query = _query_of(record)
        docs = find_documents(_results_of(record), max_depth)
        if not docs:
            continue
        if query is None:
            query = document_query_tag(docs[0])
        collector.add(query, docs)


def _group_fallback(data: Any, collector: _GroupCollector, max_depth: int) -> None:
    buckets: dict[str, list[dict]] = {}
    for record in find_documents(data, max_depth):
        query = document_query_tag(record) or DIRECT_MATCH_QUERY
        buckets.setdefault(query, []).append(record)
    for query, records in buckets.items():
        collector.add(query, records)


def group_by_query(payload: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> list[QueryGroup]:
    """Group a multi-query payload by originating sub-query.

    Never raises; an unrecognized shape degrades to the fallback buckets
    (possibly a single DIRECT_MATCH_QUERY group, or nothing at all).
    max_depth bounds every document search, as in find_documents.
    """
    data = unwrap(payload)
    collector = _GroupCollector()

    if isinstance(data, list):
        _group_records(data, collector, max_depth)
    elif isinstance(data, dict) and isinstance(data.get("queries"), list):
        return group_by_query(data["queries"], max_depth)

    if not collector.groups:
        _group_fallback(data, collector, max_depth)

    logger.debug(f"[Grouping] {len(collector.groups)} query groups")
    return collector.groups


def is_aggregated(groups: list[QueryGroup]) -> bool:
    """True when grouping fell back to one untagged bucket."""
    return len(groups) == 1 and groups[0].query == DIRECT_MATCH_QUERY
