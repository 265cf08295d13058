"""
Templates package.

Template schemas, the registration-time compiler and the template registry
with its YAML loader. Built-in templates live in ``templates/data``.
"""

from synthgen.templates.schemas import (
    DataType,
    GenerationMethod,
    DistributionKind,
    PatternKind,
    ValidationRuleType,
    Severity,
    Frequency,
    TrendDirection,
    ValidationRule,
    RuleParameters,
    GenerationRule,
    TemporalConstraints,
    RealisticRange,
    BusinessConstraints,
    QualityConstraints,
    DataConstraints,
    QualityParameters,
    MetadataConfig,
    SyntheticDataTemplate,
)
from synthgen.templates.compiler import (
    CompiledRule,
    TemplatePlan,
    TemplateCompiler,
    compile_template,
)
from synthgen.templates.registry import TemplateRegistry, BUILTIN_TEMPLATES_DIR

__all__ = [
    # Enums
    "DataType",
    "GenerationMethod",
    "DistributionKind",
    "PatternKind",
    "ValidationRuleType",
    "Severity",
    "Frequency",
    "TrendDirection",
    # Schemas
    "ValidationRule",
    "RuleParameters",
    "GenerationRule",
    "TemporalConstraints",
    "RealisticRange",
    "BusinessConstraints",
    "QualityConstraints",
    "DataConstraints",
    "QualityParameters",
    "MetadataConfig",
    "SyntheticDataTemplate",
    # Compiler
    "CompiledRule",
    "TemplatePlan",
    "TemplateCompiler",
    "compile_template",
    # Registry
    "TemplateRegistry",
    "BUILTIN_TEMPLATES_DIR",
]
