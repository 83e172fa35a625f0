"""Name -> owning-rule index over a query result."""

from typing import Dict, Optional, Protocol, Sequence

from .targets import GeneratedFileTarget, Rule, RuleTarget, Target


class RuleProvider(Protocol):
    """Materializes a queried rule into a Rule (declared digest + inputs)."""

    def get_rule(self, target: RuleTarget) -> Rule:
        ...


class RuleIndex:
    """Resolves target names to the rule that owns their digest.

    Rules are materialized on first resolution and kept for the lifetime of
    the index. Generated files are stored as aliases of their generating
    rule and followed at lookup time, so the order of the query result does
    not matter.
    """

    def __init__(self, rule_provider: RuleProvider):
        self._provider = rule_provider
        self._rule_targets: Dict[str, RuleTarget] = {}
        self._aliases: Dict[str, str] = {}  # generated file -> generating rule
        self._rules: Dict[str, Rule] = {}

    def add_rule(self, target: RuleTarget) -> None:
        self._rule_targets[target.name] = target

    def add_generated_file(self, target: GeneratedFileTarget) -> None:
        self._aliases[target.name] = target.generating_rule

    def generating_rule(self, name: str) -> Optional[str]:
        return self._aliases.get(name)

    def owner_name(self, name: str) -> Optional[str]:
        """Name of the rule owning ``name``, or None if unresolvable."""
        owner = self._aliases.get(name, name)
        if owner in self._rule_targets:
            return owner
        return None

    def resolve(self, name: str) -> Optional[Rule]:
        owner = self.owner_name(name)
        if owner is None:
            return None
        rule = self._rules.get(owner)
        if rule is None:
            rule = self._provider.get_rule(self._rule_targets[owner])
            self._rules[owner] = rule
        return rule

    def __contains__(self, name: str) -> bool:
        return self.owner_name(name) is not None

    def __len__(self) -> int:
        return len(self._rule_targets) + len(self._aliases)


def build_rule_index(targets: Sequence[Target], rule_provider: RuleProvider) -> RuleIndex:
    """Index every rule and generated file in ``targets``; source files are skipped."""
    index = RuleIndex(rule_provider)
    for target in targets:
        if not target.name:
            continue
        if isinstance(target, RuleTarget):
            index.add_rule(target)
        elif isinstance(target, GeneratedFileTarget):
            index.add_generated_file(target)
    return index
