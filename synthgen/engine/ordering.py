"""Dependency ordering of generation rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Sequence

if TYPE_CHECKING:
    from synthgen.templates.schemas import GenerationRule


@dataclass(frozen=True)
class RuleOrdering:
    """Rules in evaluation order.

    ``cyclic`` holds the rules whose dependencies could never be satisfied
    (cycles, self-references or missing fields). They are already appended
    to ``ordered`` in declaration order.
    """

    ordered: tuple[GenerationRule, ...]
    cyclic: tuple[GenerationRule, ...] = field(default_factory=tuple)

    @property
    def field_order(self) -> list[str]:
        return [rule.field_name for rule in self.ordered]

    @property
    def cyclic_fields(self) -> list[str]:
        return [rule.field_name for rule in self.cyclic]


def order_rules(
    rules: Sequence[GenerationRule],
    extra_dependencies: Mapping[str, set[str] | frozenset[str]] | None = None,
) -> RuleOrdering:
    """Order rules so every rule follows the rules it depends on.

    Works in passes: each pass takes, in declaration order, every remaining
    rule whose dependencies were all satisfied before the pass began. When a
    pass makes no progress the remainder is appended unchanged and reported
    as cyclic. Ties therefore keep declaration order and the result is
    deterministic.

    Args:
        rules: Rules in declaration order.
        extra_dependencies: Additional dependencies per field name, such as
            the fields a formula reads.

    Returns:
        RuleOrdering with the evaluation order and unresolvable rules.
    """
    extra_dependencies = extra_dependencies or {}

    def deps_of(rule: GenerationRule) -> set[str]:
        deps = set(rule.parameters.dependencies)
        deps.update(extra_dependencies.get(rule.field_name, ()))
        return deps

    remaining = list(rules)
    processed: set[str] = set()
    ordered: list[GenerationRule] = []

    while remaining:
        ready = [rule for rule in remaining if deps_of(rule) <= processed]
        if not ready:
            ordered.extend(remaining)
            return RuleOrdering(ordered=tuple(ordered), cyclic=tuple(remaining))

        ready_ids = {id(rule) for rule in ready}
        for rule in ready:
            ordered.append(rule)
            processed.add(rule.field_name)
        remaining = [rule for rule in remaining if id(rule) not in ready_ids]

    return RuleOrdering(ordered=tuple(ordered))
