"""JSON encoding of stored dashboard documents.

The front-end attaches bookkeeping keys prefixed with ``$$`` to its objects;
they are never persisted.
"""

from __future__ import annotations

import json
from typing import Any


def _strip_internal_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: _strip_internal_keys(v)
            for k, v in value.items()
            if not (isinstance(k, str) and k.startswith("$$"))
        }
    if isinstance(value, (list, tuple)):
        return [_strip_internal_keys(v) for v in value]
    return value


def to_json(document: Any) -> str:
    return json.dumps(_strip_internal_keys(document), separators=(",", ":"), ensure_ascii=False)


def from_json(raw: str | bytes) -> Any:
    # Malformed stored documents are not recoverable here; JSONDecodeError propagates.
    return json.loads(raw)
