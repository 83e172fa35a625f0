"""Snapshot JSON files (target name -> hex digest) for the CLI."""

import json
import re
from pathlib import Path
from typing import Dict, Union

from targethash._internal.canonical_json import canonical_dumps

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")


class SnapshotFormatError(ValueError):
    """Raised when a snapshot file is not a flat name -> hex digest object."""


def write_snapshot(path: Union[str, Path], snapshot: Dict[str, str]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(canonical_dumps(snapshot) + "\n", encoding="utf-8")
    return out


def load_snapshot(path: Union[str, Path]) -> Dict[str, str]:
    """Load and validate a snapshot file."""
    snapshot_path = Path(path)
    data = json.loads(snapshot_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SnapshotFormatError(f"{snapshot_path}: snapshot must be a JSON object")
    for name, digest in data.items():
        if not isinstance(digest, str) or not _HEX_DIGEST.match(digest):
            raise SnapshotFormatError(
                f"{snapshot_path}: digest for {name} is not a 64-character lowercase hex string"
            )
    return data
