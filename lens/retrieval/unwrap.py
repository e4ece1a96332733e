"""
Envelope unwrapping for backend payloads.

Some workflows wrap every item in a single-field envelope
(``{"payload": {...}, ...}``; n8n uses ``{"json": {...}}``). Unwrapping
merges the envelope contents into the record so field lookups work the
same on wrapped and bare items. Sibling fields win over envelope fields,
and the envelope key itself stays on the record, so unwrapping an
already unwrapped record changes nothing.

Nested envelopes are reached by recursion in the callers, not here.
"""

from typing import Any, Optional

ENVELOPE_KEYS = ("payload", "json")


def envelope_key(node: Any) -> Optional[str]:
    """Key of the envelope merged by unwrap_record, or None."""
    if not isinstance(node, dict):
        return None
    for key in ENVELOPE_KEYS:
        if isinstance(node.get(key), dict):
            return key
    return None


def unwrap_record(node: Any) -> Any:
    """Unwrap a single ``{payload: X, ...rest}`` record into ``{...X, payload: X, ...rest}``."""
    key = envelope_key(node)
    if key is None:
        return node
    return {**node[key], **node}


def unwrap(node: Any) -> Any:
    """Strip one envelope layer from a record or from each record of a list.

    Anything else is returned unchanged; this never raises.
    """
    if isinstance(node, list):
        return [unwrap_record(item) for item in node]
    return unwrap_record(node)
