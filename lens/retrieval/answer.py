"""Answer extraction from agent webhook responses."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from lens.retrieval.unwrap import ENVELOPE_KEYS, unwrap_record

logger = logging.getLogger(__name__)

NO_ANSWER = "No text response generated."

ANSWER_KEYS = ("output", "text", "answer", "content", "response", "message", "result")
MAX_ANSWER_DEPTH = 5


def extract_agent_output(data: Any, depth: int = 0) -> Optional[str]:
    """Find the answer text in an agent response, or None.

    Order: the node itself if it is a string, direct answer fields, the
    envelope, a ``data`` wrapper, then the first list element.
    """
    if not data or depth > MAX_ANSWER_DEPTH:
        return None

    if isinstance(data, str):
        return data if data.strip() else None

    if isinstance(data, dict):
        for key in ANSWER_KEYS:
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value

        for key in (*ENVELOPE_KEYS, "data"):
            if key in data:
                found = extract_agent_output(data[key], depth + 1)
                if found:
                    return found
        return None

    if isinstance(data, list):
        return extract_agent_output(data[0], depth + 1)

    return None


def extract_agent_metadata(data: Any) -> dict[str, Any]:
    """Collect the SQL agent's tool calls and query details."""
    if isinstance(data, list) and data:
        data = data[0]
    record = unwrap_record(data)
    metadata = record.get("metadata") if isinstance(record, dict) else None
    if not isinstance(metadata, dict):
        metadata = {}

    return {
        "tool_calls": metadata.get("tool_calls") or [],
        "sql_executed": metadata.get("sql_executed"),
        "query_results": metadata.get("query_results"),
        "datasets_discovered": metadata.get("datasets_discovered"),
        "timestamp": metadata.get("timestamp") or datetime.now(timezone.utc).isoformat(),
    }


def answer_text(data: Any) -> str:
    """Answer text with the fallback message when nothing usable is found."""
    text = extract_agent_output(data)
    if text is None:
        logger.warning(f"[Answer] Could not extract agent output from response: {str(data)[:500]}")
        return NO_ANSWER
    return text
