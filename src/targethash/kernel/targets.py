"""Build target models: the query result and materialized rules.

Query records follow the shape of bazel's ``--output=streamed_jsonproto``
``Target`` message: a ``type`` discriminator plus exactly one populated
payload (``rule``, ``sourceFile`` or ``generatedFile``). Unknown fields are
ignored so newer bazel releases do not break parsing.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from targethash.kernel.hash_utils import hash_canonical


class TargetValidationError(ValueError):
    """Raised when a query result fails consistency validation."""


class QueryRule(BaseModel):
    name: str
    rule_class: str = Field(default="", alias="ruleClass")
    location: Optional[str] = None
    attribute: List[Dict[str, Any]] = Field(default_factory=list)
    rule_input: List[str] = Field(default_factory=list, alias="ruleInput")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class QuerySourceFile(BaseModel):
    name: str
    location: Optional[str] = None
    visibility_label: List[str] = Field(default_factory=list, alias="visibilityLabel")
    subinclude: List[str] = Field(default_factory=list)
    package_group: List[str] = Field(default_factory=list, alias="packageGroup")
    feature: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class QueryGeneratedFile(BaseModel):
    name: str
    generating_rule: str = Field(alias="generatingRule")
    location: Optional[str] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RuleTarget(BaseModel):
    type: Literal["RULE"] = "RULE"
    rule: QueryRule

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def name(self) -> str:
        return self.rule.name


class SourceFileTarget(BaseModel):
    type: Literal["SOURCE_FILE"] = "SOURCE_FILE"
    source_file: QuerySourceFile = Field(alias="sourceFile")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @property
    def name(self) -> str:
        return self.source_file.name

    def declared_digest(self) -> bytes:
        """Digest of the source-file record.

        ``location`` is an absolute path on the machine that ran the query, so
        it is left out to keep digests reproducible across checkouts.
        """
        record = self.source_file
        return hash_canonical({
            "name": record.name,
            "visibility_label": list(record.visibility_label),
            "subinclude": list(record.subinclude),
            "package_group": list(record.package_group),
            "feature": list(record.feature),
        })


class GeneratedFileTarget(BaseModel):
    type: Literal["GENERATED_FILE"] = "GENERATED_FILE"
    generated_file: QueryGeneratedFile = Field(alias="generatedFile")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @property
    def name(self) -> str:
        return self.generated_file.name

    @property
    def generating_rule(self) -> str:
        return self.generated_file.generating_rule


Target = Annotated[
    Union[RuleTarget, SourceFileTarget, GeneratedFileTarget],
    Field(discriminator="type"),
]


class Rule(BaseModel):
    """A materialized rule: declared digest plus ordered rule inputs."""
    name: str
    digest: bytes
    rule_inputs: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


def validate_targets(targets: Sequence[Target]) -> None:
    """Reject query results with duplicate target names (raises TargetValidationError)."""
    seen: set[str] = set()
    duplicates: set[str] = set()
    for target in targets:
        name = target.name
        if not name:
            continue
        if name in seen:
            duplicates.add(name)
        seen.add(name)
    if duplicates:
        raise TargetValidationError(
            f"duplicate target names in query result: {', '.join(sorted(duplicates))}"
        )
