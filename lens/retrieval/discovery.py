"""
Document Discovery - locate document-like records anywhere in a payload.

Retrieval strategies return documents under different containers
(``results``, ``fused_results``, ``output`` ...), sometimes enveloped,
sometimes nested several levels deep. Discovery walks the tree with a
depth bound and returns the records that carry content.

Rules, per node (after unwrapping):
- list: if every element is document-like, it IS the document list;
  otherwise recurse into each element.
- dict: if a known container key holds a list/dict, recurse only into
  it; else the dict itself if document-like; else every value. Fields
  merged from an envelope are reached through the envelope only.
- anything else, or too deep: nothing.
"""

import json
import logging
from typing import Any

from lens.core.models import NormalizedDocument
from lens.retrieval.fields import resolve_document_fields
from lens.retrieval.unwrap import envelope_key, unwrap, unwrap_record

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 4

DOCUMENT_KEYS = (
    "pageContent", "page_content",
    "text",
    "content",
    "summary",
    "enriched_text", "enrichedText",
    "chunk",
    "chunk_text", "chunkText",
)

# Priority order; the first container present wins and siblings are ignored
CONTAINER_KEYS = (
    "results",
    "output",
    "docs",
    "documents",
    "fused_results", "fusedResults",
    "reranked_results", "rerankedResults",
)


def is_document_like(node: Any) -> bool:
    """True if the node is a mapping with at least one content-bearing field."""
    node = unwrap_record(node)
    if not isinstance(node, dict):
        return False
    return any(node.get(key) for key in DOCUMENT_KEYS)


def find_documents(node: Any, max_depth: int = DEFAULT_MAX_DEPTH, _depth: int = 0) -> list[dict]:
    """Return the raw document-like records found in `node`, in tree order."""
    if not node or _depth > max_depth:
        return []

    node = unwrap(node)

    if isinstance(node, list):
        if all(is_document_like(item) for item in node):
            return [unwrap_record(item) for item in node]
        docs: list[dict] = []
        for item in node:
            docs.extend(find_documents(item, max_depth, _depth + 1))
        return docs

    if isinstance(node, dict):
        for key in CONTAINER_KEYS:
            if isinstance(node.get(key), (list, dict)):
                return find_documents(node[key], max_depth, _depth + 1)

        if is_document_like(node):
            return [node]

        docs = []
        key = envelope_key(node)
        envelope = node[key] if key else {}
        for name, value in node.items():
            if name == key:
                # merged envelope: same level, covers the fields it contributed
                docs.extend(find_documents(value, max_depth, _depth))
            elif name in envelope and envelope[name] is value:
                continue
            else:
                docs.extend(find_documents(value, max_depth, _depth + 1))
        return docs

    return []


def discover_documents(node: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> list[NormalizedDocument]:
    """Find document-like records and normalize each one, keeping order."""
    records = find_documents(node, max_depth)
    logger.debug(f"[Discovery] Found {len(records)} document records (max_depth={max_depth})")
    return [resolve_document_fields(record) for record in records]


def content_key(record: dict) -> str:
    """Identity used to drop duplicate chunks returned by several retrievers."""
    for key in ("pageContent", "text", "content", "chunk", "chunk_text", "chunkText"):
        value = record.get(key)
        if value:
            return value if isinstance(value, str) else json.dumps(value, sort_keys=True, default=str)
    return json.dumps(record, sort_keys=True, default=str)


def dedupe_by_content(records: list[dict]) -> list[dict]:
    """Keep the first record for each distinct content, preserving order."""
    unique: dict[str, dict] = {}
    for record in records:
        unique.setdefault(content_key(record), record)
    return list(unique.values())
