"""Hash utilities with explicit canonicalization rules for stable digests.

Two kinds of hashing happen in targethash:

- Declared digests: a rule's or source file's query record is canonicalized
  to JSON and hashed, so the digest does not depend on key order or on the
  Python version that produced it.
- Propagated digests: raw byte values (declared digests, names, file
  contents, other digests) are concatenated in a fixed order and hashed once.
  ``DigestBuilder`` is the accumulator for this.

Canonical JSON rules:
- Object keys sorted recursively
- Arrays preserve order
- Floats BANNED (hard validation error)
- Strings normalized to NFC
- Non-JSON types forbidden
"""

import hashlib
import json
import unicodedata
from typing import Any, Union

DIGEST_SIZE = hashlib.sha256().digest_size


class CanonicalizationError(ValueError):
    """Raised when an object cannot be canonicalized."""
    pass


def _canonicalize(obj: Any, path: str) -> Any:
    if obj is None or isinstance(obj, bool):
        return obj
    if isinstance(obj, int):
        return obj
    if isinstance(obj, float):
        raise CanonicalizationError(
            f"Floats are not allowed in canonical JSON (at {path or '<root>'})"
        )
    if isinstance(obj, str):
        return unicodedata.normalize("NFC", obj)
    if isinstance(obj, dict):
        result = {}
        for key in sorted(obj):
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Dictionary keys must be strings at {path or '<root>'}, "
                    f"got {type(key).__name__}"
                )
            child = f"{path}.{key}" if path else key
            result[unicodedata.normalize("NFC", key)] = _canonicalize(obj[key], child)
        return result
    if isinstance(obj, (list, tuple)):
        return [
            _canonicalize(item, f"{path}[{i}]" if path else f"[{i}]")
            for i, item in enumerate(obj)
        ]
    raise CanonicalizationError(
        f"Non-JSON type at {path or '<root>'}: {type(obj).__name__}. "
        f"Only None, bool, int, str, dict, and list are allowed."
    )


def canonicalize_json(obj: Any) -> str:
    """Canonicalize a JSON-serializable object to a stable string representation.

    Raises:
        CanonicalizationError: If object contains floats or non-JSON types
    """
    canonicalized = _canonicalize(obj, "")
    return json.dumps(canonicalized, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def hash_canonical(obj: Any) -> bytes:
    """Raw sha256 digest of the canonical JSON form of ``obj``."""
    return hashlib.sha256(canonicalize_json(obj).encode("utf-8")).digest()


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def to_hex(digest: bytes) -> str:
    """Lowercase hex, two characters per byte."""
    return digest.hex()


class DigestBuilder:
    """Order-sensitive sha256 accumulator.

    Every ``update`` appends raw bytes; the final digest is the hash of the
    concatenation. Strings are encoded as UTF-8. Empty values contribute
    zero bytes.
    """

    def __init__(self) -> None:
        self._hash = hashlib.sha256()

    def update(self, value: Union[bytes, str]) -> "DigestBuilder":
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._hash.update(value)
        return self

    def digest(self) -> bytes:
        return self._hash.digest()

    def hexdigest(self) -> str:
        return self._hash.hexdigest()
