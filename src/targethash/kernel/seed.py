"""Seed digest: one digest folded into every target to simulate file changes."""

from typing import Iterable

from .hash_utils import DigestBuilder
from .source_digest import Filesystem


def build_seed_digest(paths: Iterable[str], filesystem: Filesystem) -> bytes:
    """Combine the contents of ``paths`` into a single digest.

    Paths are de-duplicated and read in lexicographic order, so callers may
    pass an unordered set. No paths means no seed: ``b""``.
    """
    ordered = sorted(set(paths))
    if not ordered:
        return b""
    builder = DigestBuilder()
    for path in ordered:
        builder.update(filesystem.read_file(path))
    return builder.digest()
