"""Digest propagation over the rule graph.

A rule's digest is sha256 over, in order:

1. its declared digest
2. the seed digest (empty when there is no seed)
3. for each rule input, in declared order: the input name, then the input's
   own digest (a rule's propagated digest, or a source file's digest, or
   nothing when the name cannot be resolved)

Inputs that resolve to the rule itself are skipped entirely. Source files
hash their source digest plus the seed; generated files take the digest of
their generating rule.

Rule digests are memoized in a per-snapshot ``DigestCache`` so each rule is
hashed once no matter how many dependents reach it. The traversal uses an
explicit stack, so deep dependency chains are not bounded by the interpreter
recursion limit.
"""

import threading
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .hash_utils import DigestBuilder, to_hex
from .index import RuleIndex
from .targets import GeneratedFileTarget, Rule, RuleTarget, SourceFileTarget, Target


class DigestError(Exception):
    """Base exception for digest computation errors."""
    pass


class CycleDetectedError(DigestError):
    """Raised when rule inputs form a cycle longer than a self-reference."""
    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        cycle_str = " -> ".join(cycle) + f" -> {cycle[0]}"
        super().__init__(f"Cycle detected in rule graph:\n  Cycle: {cycle_str}")


class DanglingReferenceError(DigestError):
    """Raised in strict mode when a generated file's generating rule is missing."""
    def __init__(self, name: str, generating_rule: Optional[str]):
        self.name = name
        self.generating_rule = generating_rule
        super().__init__(
            f"Generated file {name} references generating rule {generating_rule} "
            f"which is not in the query result"
        )


class DigestCache:
    """Per-snapshot memoization of rule digests.

    ``store`` is insert-if-absent: the first digest stored for a rule wins.
    ``begin``/``in_progress`` mark rules whose inputs are still being
    visited, which is how cycles are detected. All bookkeeping goes through
    one lock, so a cache shared across threads keeps the first digest stored
    for each rule.
    """

    def __init__(self) -> None:
        self._digests: Dict[str, bytes] = {}
        self._in_progress: Set[str] = set()
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[bytes]:
        with self._lock:
            return self._digests.get(name)

    def store(self, name: str, digest: bytes) -> bytes:
        with self._lock:
            existing = self._digests.setdefault(name, digest)
            self._in_progress.discard(name)
        return existing

    def begin(self, name: str) -> bool:
        """Mark ``name`` as being visited; False if it is already stored or in progress."""
        with self._lock:
            if name in self._digests or name in self._in_progress:
                return False
            self._in_progress.add(name)
            return True

    def in_progress(self, name: str) -> bool:
        with self._lock:
            return name in self._in_progress

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._digests

    def __len__(self) -> int:
        with self._lock:
            return len(self._digests)


def _fold_rule(
    rule: Rule,
    index: RuleIndex,
    source_digests: Mapping[str, bytes],
    seed_digest: bytes,
    cache: DigestCache,
) -> bytes:
    """Hash one rule whose rule inputs all have cached digests."""
    builder = DigestBuilder()
    builder.update(rule.digest)
    builder.update(seed_digest)
    for input_name in rule.rule_inputs:
        dependency = index.resolve(input_name)
        if dependency is not None and dependency.name == rule.name:
            continue
        builder.update(input_name)
        if dependency is not None:
            builder.update(cache.get(dependency.name))
        elif input_name in source_digests:
            builder.update(source_digests[input_name])
    return builder.digest()


def _next_pending(
    rule: Rule,
    position: int,
    index: RuleIndex,
    cache: DigestCache,
) -> tuple[int, Optional[Rule]]:
    """Find the next rule input (from ``position``) whose digest is not cached yet."""
    inputs = rule.rule_inputs
    while position < len(inputs):
        dependency = index.resolve(inputs[position])
        position += 1
        if dependency is None or dependency.name == rule.name:
            continue
        if dependency.name not in cache:
            return position, dependency
    return position, None


def compute_rule_digest(
    rule: Rule,
    index: RuleIndex,
    source_digests: Mapping[str, bytes],
    seed_digest: bytes,
    cache: DigestCache,
) -> bytes:
    """Digest of ``rule`` including everything it transitively depends on."""
    cached = cache.get(rule.name)
    if cached is not None:
        return cached

    # Each frame is [rule, position of the next input to visit]
    stack: List[list] = [[rule, 0]]
    cache.begin(rule.name)
    while stack:
        frame = stack[-1]
        current = frame[0]
        frame[1], pending = _next_pending(current, frame[1], index, cache)
        if pending is not None:
            if cache.in_progress(pending.name):
                names = [f[0].name for f in stack]
                start = names.index(pending.name) if pending.name in names else 0
                raise CycleDetectedError(names[start:])
            cache.begin(pending.name)
            stack.append([pending, 0])
            continue
        cache.store(current.name, _fold_rule(current, index, source_digests, seed_digest, cache))
        stack.pop()
    return cache.get(rule.name)


def digest_source_file(name: str, source_digests: Mapping[str, bytes], seed_digest: bytes) -> bytes:
    builder = DigestBuilder()
    builder.update(source_digests.get(name, b""))
    builder.update(seed_digest)
    return builder.digest()


def digest_all_targets(
    targets: Sequence[Target],
    index: RuleIndex,
    source_digests: Mapping[str, bytes],
    seed_digest: bytes,
    cache: Optional[DigestCache] = None,
    strict: bool = False,
) -> Dict[str, str]:
    """Compute the snapshot (target name -> hex digest) for a query result.

    Generated files whose generating rule is not in the index are left out of
    the snapshot, or raise DanglingReferenceError when ``strict`` is set.
    Any exception aborts the whole computation; no partial snapshot is
    returned.
    """
    if cache is None:
        cache = DigestCache()
    snapshot: Dict[str, str] = {}
    for target in targets:
        name = target.name
        if not name:
            continue
        if isinstance(target, SourceFileTarget):
            digest = digest_source_file(name, source_digests, seed_digest)
        elif isinstance(target, GeneratedFileTarget):
            rule = index.resolve(name)
            if rule is None:
                if strict:
                    raise DanglingReferenceError(name, target.generating_rule)
                continue
            digest = compute_rule_digest(rule, index, source_digests, seed_digest, cache)
        elif isinstance(target, RuleTarget):
            rule = index.resolve(name)
            digest = compute_rule_digest(rule, index, source_digests, seed_digest, cache)
        else:
            continue
        snapshot[name] = to_hex(digest)
    return snapshot
