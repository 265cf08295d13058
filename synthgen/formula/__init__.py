"""
Formula package.

Compiles formula rule expressions to a closed AST at registration time and
evaluates them over the record being built.
"""

from synthgen.formula.ir import (
    Number,
    FieldRef,
    UnaryOp,
    BinaryOp,
    Compare,
    BoolOp,
    Conditional,
    Call,
    CompiledFormula,
)
from synthgen.formula.compiler import (
    FormulaCompiler,
    compile_formula,
    FUNCTION_ARITY,
    CONSTANTS,
)
from synthgen.formula.evaluator import FormulaEvaluator, evaluate_formula

__all__ = [
    # AST
    "Number",
    "FieldRef",
    "UnaryOp",
    "BinaryOp",
    "Compare",
    "BoolOp",
    "Conditional",
    "Call",
    "CompiledFormula",
    # Compiler
    "FormulaCompiler",
    "compile_formula",
    "FUNCTION_ARITY",
    "CONSTANTS",
    # Evaluator
    "FormulaEvaluator",
    "evaluate_formula",
]
