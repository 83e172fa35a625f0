"""Centralized canonical JSON serialization.

Used for every JSON document targethash writes (snapshots, impact reports)
so that two runs over the same inputs produce byte-identical files.
"""

import json
from typing import Any


def canonical_dumps(obj: Any, indent: int | None = None) -> str:
    """
    Canonical JSON serialization.

    Rules:
    - Sorted keys
    - Stable separators (",", ":") unless ``indent`` is given
    - UTF-8 (no ASCII escaping)
    - Lists must already be sorted by the caller where order is not meaningful
    """
    if indent is not None:
        return json.dumps(obj, sort_keys=True, indent=indent, ensure_ascii=False)
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )
