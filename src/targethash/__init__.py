"""targethash: content-addressed target digests + impacted-target detection."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("targethash")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from targethash.api import (
    ImpactReport,
    TargetHashingClient,
    diff_snapshots,
    hash_all_targets,
)

__all__ = [
    "__version__",
    "hash_all_targets",
    "diff_snapshots",
    "ImpactReport",
    "TargetHashingClient",
]
