"""Digests for source-file targets, optionally including on-disk content."""

import posixpath
from typing import Dict, Optional, Protocol, Sequence

from .hash_utils import DigestBuilder
from .targets import SourceFileTarget, Target


class Filesystem(Protocol):
    """Read-only file access used by the kernel."""

    def read_file(self, path: str) -> bytes:
        ...

    def file_exists(self, path: str) -> bool:
        ...


def label_to_path(name: str, workspace_root: Optional[str]) -> Optional[str]:
    """Map a ``//package:target`` label to a file path under ``workspace_root``.

    Returns None when there is no root or the label is not a main-repository
    label (external ``@repo//...`` labels, plain names).
    """
    if not workspace_root or not name.startswith("//"):
        return None
    relative = name[2:].replace(":", "/", 1)
    # //:BUILD becomes "/BUILD"; keep it under the root
    return posixpath.join(workspace_root, relative.lstrip("/"))


def resolve_source_digest(
    name: str,
    declared_digest: bytes,
    filesystem: Filesystem,
    workspace_root: Optional[str] = None,
) -> bytes:
    """Compute the final digest of a source-file target.

    Content of the file at the label's path (if any) goes first, then the
    declared digest, then the name. Read errors after the existence check
    propagate to the caller.
    """
    builder = DigestBuilder()
    path = label_to_path(name, workspace_root)
    if path is not None and filesystem.file_exists(path):
        builder.update(filesystem.read_file(path))
    builder.update(declared_digest)
    builder.update(name)
    return builder.digest()


def build_source_digests(
    targets: Sequence[Target],
    filesystem: Filesystem,
    workspace_root: Optional[str] = None,
) -> Dict[str, bytes]:
    """Source-digest table (name -> digest) for every source file in ``targets``."""
    digests: Dict[str, bytes] = {}
    for target in targets:
        if not isinstance(target, SourceFileTarget) or not target.name:
            continue
        digests[target.name] = resolve_source_digest(
            target.name,
            target.declared_digest(),
            filesystem,
            workspace_root,
        )
    return digests
