"""Local filesystem access for source and seed digests."""

from pathlib import Path
from typing import Optional, Union


class LocalFilesystem:
    """Read-only access to files on disk.

    Relative paths are resolved against ``root`` when one is given, otherwise
    against the current working directory. Directories do not count as
    existing files.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else None

    def _path(self, path: str) -> Path:
        p = Path(path)
        if self.root is not None and not p.is_absolute():
            return self.root / p
        return p

    def read_file(self, path: str) -> bytes:
        return self._path(path).read_bytes()

    def file_exists(self, path: str) -> bool:
        return self._path(path).is_file()
