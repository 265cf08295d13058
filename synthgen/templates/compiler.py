"""
Template compiler.

Turns a validated SyntheticDataTemplate into a TemplatePlan once, at
registration, so that generation never re-parses formulas or re-sorts rules:
- Formula rules are compiled to the closed expression AST
- Formula free variables are merged into each rule's dependencies
- Rules are put in dependency order; unresolvable rules are reported
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from synthgen.core.config import get_settings
from synthgen.core.exceptions import CyclicDependencyError
from synthgen.engine.ordering import order_rules
from synthgen.formula import CompiledFormula, FormulaCompiler
from .schemas import GenerationMethod, GenerationRule, SyntheticDataTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """A generation rule with its registration-time artifacts."""

    rule: GenerationRule
    dependencies: frozenset[str] = frozenset()
    """Declared dependencies plus fields the formula reads."""

    formula: CompiledFormula | None = None
    cyclic: bool = False
    """True when the rule's dependencies could not all be placed before it."""

    @property
    def field_name(self) -> str:
        return self.rule.field_name


@dataclass(frozen=True)
class TemplatePlan:
    """Compiled, evaluation-ready form of a template."""

    template_id: str
    rules: tuple[CompiledRule, ...]
    """Rules in evaluation order."""

    cyclic_fields: tuple[str, ...] = ()
    compiled_at: str | None = None
    source_hash: str | None = None

    @property
    def field_order(self) -> list[str]:
        return [compiled.field_name for compiled in self.rules]


class TemplateCompiler:
    """Compiles templates to TemplatePlans."""

    def __init__(
        self,
        strict_dependencies: bool | None = None,
        formula_compiler: FormulaCompiler | None = None,
    ):
        settings = get_settings()
        self.strict_dependencies = (
            settings.strict_dependencies
            if strict_dependencies is None
            else strict_dependencies
        )
        self.formula_compiler = formula_compiler or FormulaCompiler(
            max_nodes=settings.formula_max_nodes,
            max_depth=settings.formula_max_depth,
        )

    def compile(self, template: SyntheticDataTemplate) -> TemplatePlan:
        """Compile a template.

        Args:
            template: The validated template.

        Returns:
            TemplatePlan with rules in evaluation order.

        Raises:
            FormulaSyntaxError: If a formula rule does not compile.
            CyclicDependencyError: In strict mode, if some rules can never
                be ordered after their dependencies.
        """
        formulas: dict[str, CompiledFormula] = {}
        for rule in template.generation_rules:
            if rule.generation_method == GenerationMethod.FORMULA:
                formulas[rule.field_name] = self.formula_compiler.compile(
                    rule.parameters.formula or ""
                )

        extra = {name: set(f.variables) for name, f in formulas.items()}
        ordering = order_rules(template.generation_rules, extra_dependencies=extra)
        cyclic_fields = ordering.cyclic_fields

        if cyclic_fields:
            if self.strict_dependencies:
                raise CyclicDependencyError(template.template_id, cyclic_fields)
            logger.warning(
                "Template %s has unresolvable dependencies; evaluating %s in declaration order",
                template.template_id,
                ", ".join(cyclic_fields),
            )

        cyclic_set = set(cyclic_fields)
        compiled_rules = tuple(
            CompiledRule(
                rule=rule,
                dependencies=frozenset(
                    set(rule.parameters.dependencies) | extra.get(rule.field_name, set())
                ),
                formula=formulas.get(rule.field_name),
                cyclic=rule.field_name in cyclic_set,
            )
            for rule in ordering.ordered
        )

        source_hash = hashlib.sha256(
            template.model_dump_json().encode()
        ).hexdigest()[:16]

        return TemplatePlan(
            template_id=template.template_id,
            rules=compiled_rules,
            cyclic_fields=tuple(cyclic_fields),
            compiled_at=datetime.now(timezone.utc).isoformat(),
            source_hash=source_hash,
        )


def compile_template(template: SyntheticDataTemplate) -> TemplatePlan:
    """Convenience function to compile a single template."""
    return TemplateCompiler().compile(template)
