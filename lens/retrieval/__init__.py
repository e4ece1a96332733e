"""Retrieval payload normalization for notebook-lens."""

from lens.retrieval.discovery import discover_documents, find_documents, is_document_like
from lens.retrieval.fields import resolve_document_fields, resolve_title
from lens.retrieval.grouping import DIRECT_MATCH_QUERY, group_by_query, is_aggregated
from lens.retrieval.router import select_view
from lens.retrieval.unwrap import unwrap

__all__ = [
    # Unwrap / discovery
    "unwrap",
    "find_documents",
    "discover_documents",
    "is_document_like",
    # Fields
    "resolve_document_fields",
    "resolve_title",
    # Grouping
    "group_by_query",
    "is_aggregated",
    "DIRECT_MATCH_QUERY",
    # Router
    "select_view",
]
