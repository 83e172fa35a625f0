"""Default rule provider: declared rule digests from canonicalized attributes."""

from typing import Dict, Tuple

from targethash.kernel.hash_utils import hash_canonical
from targethash.kernel.targets import QueryRule, Rule, RuleTarget


class CanonicalRuleProvider:
    """Materialize rules from their query records.

    The declared digest covers the rule name, rule class and attribute list
    (in query order). ``location`` is left out because it is an absolute path
    on the machine that ran the query. Materialized rules are cached by name
    together with the record they came from; a record that differs from the
    cached one is materialized again, so one provider can serve several
    snapshots.

    Raises CanonicalizationError when an attribute value cannot be
    canonicalized (e.g. a float).
    """

    def __init__(self) -> None:
        self._rules: Dict[str, Tuple[QueryRule, Rule]] = {}

    def get_rule(self, target: RuleTarget) -> Rule:
        record = target.rule
        cached = self._rules.get(target.name)
        if cached is not None and cached[0] == record:
            return cached[1]
        digest = hash_canonical({
            "name": record.name,
            "rule_class": record.rule_class,
            "attributes": [dict(attribute) for attribute in record.attribute],
        })
        rule = Rule(name=record.name, digest=digest, rule_inputs=list(record.rule_input))
        self._rules[target.name] = (record, rule)
        return rule
