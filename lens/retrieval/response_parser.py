"""
Lenient JSON decoding for webhook response bodies.

Workflow backends occasionally stream NDJSON or concatenate several JSON
documents into one body. Strategies (in order):
1. Blank body -> {}
2. Direct json.loads
3. First balanced top-level object/array (string-aware scan)
"""

import json
import logging
from typing import Any

from lens.core.exceptions import ResponseParseError

logger = logging.getLogger(__name__)


def _first_json_document(text: str) -> str:
    """Return the first balanced JSON object/array in `text`, or ''."""
    stripped = text.lstrip()
    if not stripped or stripped[0] not in "[{":
        return ""
    open_char = stripped[0]
    close_char = "]" if open_char == "[" else "}"

    depth = 0
    in_string = False
    escape_next = False
    start = -1

    for i, char in enumerate(stripped):
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == open_char:
            if depth == 0:
                start = i
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0 and start != -1:
                return stripped[start : i + 1]
    return ""


def parse_json_lenient(text: str) -> Any:
    """Decode a response body, tolerating NDJSON and trailing garbage.

    Raises:
        ResponseParseError: if no JSON document can be recovered
    """
    if not text or not text.strip():
        return {}

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"[ResponseParser] Direct parse failed, scanning for first document: {e}")
        first_error = e

    candidate = _first_json_document(text)
    if candidate:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            pass

    raise ResponseParseError(
        f"Invalid JSON response: {first_error}",
        context={"preview": text[:200]},
    )
