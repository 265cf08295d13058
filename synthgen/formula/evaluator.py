"""Tree-walking interpreter for compiled formulas."""

from __future__ import annotations

import math
import operator
from typing import Any, Callable, Mapping

import numpy as np

from synthgen.core.exceptions import FormulaEvaluationError
from .ir import (
    BinaryOp,
    BoolOp,
    Call,
    Compare,
    CompiledFormula,
    Conditional,
    FieldRef,
    Node,
    Number,
    UnaryOp,
)


def _power(base: Any, exponent: Any) -> float:
    # Float-only so that huge integer powers overflow instead of running long
    return math.pow(base, exponent)


BINARY_FUNCS: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
    "**": _power,
}

COMPARE_FUNCS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

MATH_FUNCS: dict[str, Callable[..., Any]] = {
    "floor": math.floor,
    "ceil": math.ceil,
    "round": round,
    "abs": abs,
    "min": min,
    "max": max,
    "sqrt": math.sqrt,
    "log": math.log,
    "exp": math.exp,
    "pow": _power,
    "sin": math.sin,
    "cos": math.cos,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.number))


class FormulaEvaluator:
    """Evaluates a compiled formula against a partially built record.

    The only inputs are the record's fields and the record's random stream;
    evaluation has no side effects beyond advancing that stream.
    """

    def __init__(self, record: Mapping[str, Any], rng: np.random.Generator):
        self.record = record
        self.rng = rng

    def evaluate(self, formula: CompiledFormula) -> Any:
        """Evaluate the formula.

        Raises:
            FormulaEvaluationError: On missing or non-numeric fields, arithmetic
                failures, or a non-numeric result.
        """
        try:
            result = self._eval(formula.root)
        except FormulaEvaluationError:
            raise
        except (ArithmeticError, TypeError, ValueError) as e:
            raise FormulaEvaluationError(
                f"Formula evaluation failed: {formula.source} ({type(e).__name__}: {e})"
            ) from e
        if not _is_number(result):
            raise FormulaEvaluationError(
                f"Formula {formula.source} produced a non-numeric value: {type(result).__name__}"
            )
        return result

    def _eval(self, node: Node) -> Any:
        if isinstance(node, Number):
            return node.value

        if isinstance(node, FieldRef):
            if node.name not in self.record:
                raise FormulaEvaluationError(
                    f"Field '{node.name}' is not available in the record"
                )
            value = self.record[node.name]
            if not _is_number(value):
                raise FormulaEvaluationError(
                    f"Field '{node.name}' is not numeric: {value!r}"
                )
            return value

        if isinstance(node, BinaryOp):
            return BINARY_FUNCS[node.op](self._eval(node.left), self._eval(node.right))

        if isinstance(node, UnaryOp):
            value = self._eval(node.operand)
            if node.op == "-":
                return -value
            if node.op == "+":
                return +value
            return not value

        if isinstance(node, Compare):
            return COMPARE_FUNCS[node.op](self._eval(node.left), self._eval(node.right))

        if isinstance(node, BoolOp):
            if node.op == "and":
                result: Any = True
                for value_node in node.values:
                    result = self._eval(value_node)
                    if not result:
                        return result
                return result
            result = False
            for value_node in node.values:
                result = self._eval(value_node)
                if result:
                    return result
            return result

        if isinstance(node, Conditional):
            if self._eval(node.test):
                return self._eval(node.body)
            return self._eval(node.orelse)

        if isinstance(node, Call):
            if node.function == "random":
                return self.rng.random()
            args = [self._eval(a) for a in node.args]
            return MATH_FUNCS[node.function](*args)

        raise FormulaEvaluationError(f"Unknown node type: {type(node).__name__}")


def evaluate_formula(
    formula: CompiledFormula,
    record: Mapping[str, Any],
    rng: np.random.Generator,
) -> Any:
    """Convenience function to evaluate a compiled formula."""
    return FormulaEvaluator(record, rng).evaluate(formula)
