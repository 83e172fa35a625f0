"""Query services: where the target graph comes from.

Both services produce the ordered target list of a ``bazel query
--output=streamed_jsonproto`` run, one JSON ``Target`` record per line.
``JsonLinesQueryService`` reads a saved query output (a JSON-lines file or a
JSON array); ``BazelQueryService`` runs bazel in a workspace.

Record types other than rules, source files and generated files (package
groups, environment groups) are skipped.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Iterable, List, Protocol, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from targethash.kernel.targets import Target, validate_targets

logger = logging.getLogger(__name__)

TARGET_TYPES = frozenset({"RULE", "SOURCE_FILE", "GENERATED_FILE"})

_target_adapter: TypeAdapter[Target] = TypeAdapter(Target)


class QueryError(RuntimeError):
    """Raised when the target query fails or returns malformed records."""


class QueryService(Protocol):
    def query_all_targets(self) -> List[Target]:
        ...


def parse_target_record(record: Any, location: str = "") -> Target | None:
    """Validate one decoded ``Target`` record; None for skipped record types."""
    if not isinstance(record, dict):
        raise QueryError(f"{location}query record must be a JSON object")
    record_type = record.get("type")
    if record_type not in TARGET_TYPES:
        logger.debug("%sskipping query record of type %s", location, record_type)
        return None
    try:
        return _target_adapter.validate_python(record)
    except ValidationError as e:
        raise QueryError(f"{location}invalid {record_type} record: {e}") from e


def parse_query_records(records: Iterable[Any]) -> List[Target]:
    """Validate decoded records into targets, preserving query order."""
    targets: List[Target] = []
    for i, record in enumerate(records):
        target = parse_target_record(record, f"record {i}: ")
        if target is not None:
            targets.append(target)
    validate_targets(targets)
    return targets


def parse_query_lines(lines: Iterable[str]) -> List[Target]:
    """Parse ``streamed_jsonproto`` output (one JSON record per line)."""
    records = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise QueryError(f"line {lineno}: malformed JSON in query output: {e}") from e
    return parse_query_records(records)


class JsonLinesQueryService:
    """Targets from a saved query output file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def query_all_targets(self) -> List[Target]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise QueryError(f"cannot read query output {self.path}: {e}") from e
        if text.lstrip().startswith("["):
            try:
                records = json.loads(text)
            except json.JSONDecodeError as e:
                raise QueryError(f"{self.path}: malformed JSON in query output: {e}") from e
            targets = parse_query_records(records)
        else:
            targets = parse_query_lines(text.splitlines())
        logger.info("Loaded %d targets from %s", len(targets), self.path)
        return targets


class BazelQueryService:
    """Targets from ``bazel query`` run in a workspace."""

    def __init__(
        self,
        workspace: Union[str, Path],
        bazel_path: str = "bazel",
        query_expression: str = "//...:all-targets",
        timeout: int = 600,
        extra_args: Sequence[str] = (),
    ):
        self.workspace = Path(workspace)
        self.bazel_path = bazel_path
        self.query_expression = query_expression
        self.timeout = timeout
        self.extra_args = list(extra_args)

    def command(self) -> List[str]:
        return [
            self.bazel_path,
            "query",
            self.query_expression,
            "--output=streamed_jsonproto",
            *self.extra_args,
        ]

    def query_all_targets(self) -> List[Target]:
        cmd = self.command()
        logger.info("Running %s in %s", " ".join(cmd), self.workspace)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.workspace,
            )
        except FileNotFoundError as e:
            raise QueryError(f"bazel not found: {self.bazel_path}") from e
        except subprocess.TimeoutExpired as e:
            raise QueryError(f"bazel query timed out after {self.timeout}s") from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise QueryError(
                f"bazel query failed (exit {result.returncode})"
                + (f": {stderr}" if stderr else "")
            )
        targets = parse_query_lines(result.stdout.splitlines())
        logger.info("bazel query returned %d targets", len(targets))
        return targets
