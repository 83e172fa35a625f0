"""Public API for targethash.

High-level functions that return complete, structured results. The CLI is a
thin layer over these; programmatic callers should use them instead of the
kernel modules directly.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from pydantic import BaseModel, Field

from targethash._internal.io.filesystem import LocalFilesystem
from targethash.config import Settings
from targethash.kernel.impact import classify_impact, impacted_targets
from targethash.kernel.index import RuleProvider, build_rule_index
from targethash.kernel.propagation import DigestCache, digest_all_targets
from targethash.kernel.seed import build_seed_digest
from targethash.kernel.source_digest import Filesystem, build_source_digests
from targethash.kernel.targets import Target, validate_targets
from targethash.query import BazelQueryService, JsonLinesQueryService, QueryService
from targethash.rules import CanonicalRuleProvider

logger = logging.getLogger(__name__)


def _normalize_root(path: Optional[Union[str, os.PathLike]]) -> Optional[str]:
    """Workspace roots are joined with posix label paths; keep them as str."""
    if path is None:
        return None
    return Path(path).as_posix()


class ImpactReport(BaseModel):
    """Stable result model for a snapshot comparison."""
    impacted_targets: list[str]  # Sorted; added + changed
    added_targets: list[str] = Field(default_factory=list)
    changed_targets: list[str] = Field(default_factory=list)
    removed_targets: list[str] = Field(default_factory=list)  # Informational, never impacted
    counts: dict[str, int] = Field(default_factory=dict)


def hash_all_targets(
    targets: Sequence[Target],
    seed_file_paths: Iterable[str] = (),
    filesystem: Optional[Filesystem] = None,
    rule_provider: Optional[RuleProvider] = None,
    workspace_root: Optional[Union[str, os.PathLike]] = None,
    strict: bool = False,
) -> Dict[str, str]:
    """
    Compute the snapshot (target name -> hex digest) for a query result.

    Args:
        targets: Ordered query result
        seed_file_paths: Files whose content is folded into every digest
        filesystem: File access for seed and source files (defaults to the local disk)
        rule_provider: Materializes rules (defaults to CanonicalRuleProvider)
        workspace_root: When set, on-disk source content is part of source digests
        strict: Fail on generated files whose generating rule is missing

    Raises:
        TargetValidationError: if two targets share a name

    Returns:
        Snapshot mapping every resolvable target to a 64-character hex digest
    """
    validate_targets(targets)
    filesystem = filesystem if filesystem is not None else LocalFilesystem()
    rule_provider = rule_provider if rule_provider is not None else CanonicalRuleProvider()
    root = _normalize_root(workspace_root)

    seed_digest = build_seed_digest(seed_file_paths, filesystem)
    source_digests = build_source_digests(targets, filesystem, root)
    index = build_rule_index(targets, rule_provider)
    cache = DigestCache()
    snapshot = digest_all_targets(
        targets,
        index,
        source_digests,
        seed_digest,
        cache=cache,
        strict=strict,
    )
    logger.info(
        "Hashed %d targets (%d source files, %d rules computed, seed=%s)",
        len(snapshot),
        len(source_digests),
        len(cache),
        "yes" if seed_digest else "no",
    )
    return snapshot


def diff_snapshots(start: Mapping[str, str], end: Mapping[str, str]) -> ImpactReport:
    """Compare two snapshots; impacted = new in ``end`` or digest changed."""
    result = classify_impact(start, end)
    return ImpactReport(
        impacted_targets=sorted(result.impacted),
        added_targets=sorted(result.added),
        changed_targets=sorted(result.changed),
        removed_targets=sorted(result.removed),
        counts={
            "impacted": len(result.impacted),
            "added": len(result.added),
            "changed": len(result.changed),
            "removed": len(result.removed),
        },
    )


class TargetHashingClient:
    """Hashes every target a query service returns and compares snapshots."""

    def __init__(
        self,
        query_service: QueryService,
        filesystem: Optional[Filesystem] = None,
        rule_provider: Optional[RuleProvider] = None,
        workspace_root: Optional[Union[str, os.PathLike]] = None,
        strict: bool = False,
    ):
        self.query_service = query_service
        self.filesystem = filesystem if filesystem is not None else LocalFilesystem()
        self.rule_provider = rule_provider
        self.workspace_root = workspace_root
        self.strict = strict
        self.targets: Optional[List[Target]] = None  # Last query result

    def query_all_targets(self) -> List[Target]:
        """Run the query and remember its result."""
        self.targets = self.query_service.query_all_targets()
        return self.targets

    def query_all_source_file_targets(self) -> Dict[str, bytes]:
        """Source-digest table for the last query result (queries once if none yet)."""
        targets = self.targets if self.targets is not None else self.query_all_targets()
        return build_source_digests(targets, self.filesystem, _normalize_root(self.workspace_root))

    def hash_all_targets(self, seed_file_paths: Iterable[str] = ()) -> Dict[str, str]:
        targets = self.query_all_targets()
        return hash_all_targets(
            targets,
            seed_file_paths,
            filesystem=self.filesystem,
            rule_provider=self.rule_provider,
            workspace_root=self.workspace_root,
            strict=self.strict,
        )

    def get_impacted_targets(self, start: Mapping[str, str], end: Mapping[str, str]) -> Set[str]:
        return impacted_targets(start, end)


def client_from_settings(
    settings: Settings,
    workspace: Optional[Union[str, os.PathLike]] = None,
    query_file: Optional[Union[str, os.PathLike]] = None,
) -> TargetHashingClient:
    """Build a client from settings.

    A saved query file takes precedence over running bazel; running bazel
    requires a workspace. On-disk content hashing needs a workspace too.
    """
    if query_file is not None:
        query_service: QueryService = JsonLinesQueryService(query_file)
    elif workspace is not None:
        query_service = BazelQueryService(
            workspace,
            bazel_path=settings.bazel_path,
            query_expression=settings.query_expression,
            timeout=settings.query_timeout_seconds,
        )
    else:
        raise ValueError("either a query file or a workspace is required")

    workspace_root = None
    if settings.content_hashes:
        if workspace is None:
            raise ValueError("content hashes require a workspace")
        workspace_root = workspace

    return TargetHashingClient(
        query_service,
        filesystem=LocalFilesystem(),
        workspace_root=workspace_root,
        strict=settings.strict_generated_files,
    )
