"""
Formula compiler.

Parses a formula string with Python's own expression grammar and translates
the result into the closed node set of ``synthgen.formula.ir``. Anything
outside that set (attribute access, subscripts, lambdas, comprehensions,
unknown functions, string literals) is rejected at compile time.

Example:
    formula = compile_formula("floor(spend * (0.01 + random() * 0.03))")
    formula.variables  # frozenset({"spend"})
"""

from __future__ import annotations

import ast
import math

from synthgen.core.exceptions import FormulaSyntaxError
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

DEFAULT_MAX_NODES = 256
DEFAULT_MAX_DEPTH = 32

# Allow-listed helpers and their (min, max) arity; None = variadic
FUNCTION_ARITY: dict[str, tuple[int, int | None]] = {
    "random": (0, 0),
    "floor": (1, 1),
    "ceil": (1, 1),
    "round": (1, 2),
    "abs": (1, 1),
    "min": (1, None),
    "max": (1, None),
    "sqrt": (1, 1),
    "log": (1, 2),
    "exp": (1, 1),
    "pow": (2, 2),
    "sin": (1, 1),
    "cos": (1, 1),
}

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
}

# ``Math.floor(x)`` / ``math.floor(x)`` are accepted as aliases
NAMESPACE_ALIASES = {"Math", "math"}

BINARY_OPERATORS: dict[type, str] = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.FloorDiv: "//",
    ast.Mod: "%",
    ast.Pow: "**",
}

COMPARE_OPERATORS: dict[type, str] = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
}

UNARY_OPERATORS: dict[type, str] = {
    ast.UAdd: "+",
    ast.USub: "-",
    ast.Not: "not",
}


class FormulaCompiler:
    """Compiles formula strings to the closed expression AST."""

    def __init__(
        self,
        max_nodes: int = DEFAULT_MAX_NODES,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.max_nodes = max_nodes
        self.max_depth = max_depth
        self._node_count = 0
        self._variables: set[str] = set()
        self._uses_random = False

    def compile(self, source: str) -> CompiledFormula:
        """Compile a formula.

        Args:
            source: Expression text, e.g. ``"impressions * (0.6 + random() * 0.4)"``

        Returns:
            CompiledFormula with the root node and referenced fields.

        Raises:
            FormulaSyntaxError: If the text is not a valid closed expression
                or exceeds the size limits.
        """
        if not source or not source.strip():
            raise FormulaSyntaxError("Formula must not be empty")

        self._node_count = 0
        self._variables = set()
        self._uses_random = False

        try:
            tree = ast.parse(source.strip(), mode="eval")
        except SyntaxError as e:
            raise FormulaSyntaxError(f"Invalid formula '{source}': {e.msg}") from e

        root = self._translate(tree.body, depth=1)

        return CompiledFormula(
            source=source,
            root=root,
            variables=frozenset(self._variables),
            node_count=self._node_count,
            uses_random=self._uses_random,
        )

    def _translate(self, node: ast.AST, depth: int) -> Node:
        """Translate one Python AST node into the closed node set."""
        self._node_count += 1
        if self._node_count > self.max_nodes:
            raise FormulaSyntaxError(
                f"Formula exceeds the maximum of {self.max_nodes} nodes"
            )
        if depth > self.max_depth:
            raise FormulaSyntaxError(
                f"Formula exceeds the maximum nesting depth of {self.max_depth}"
            )

        if isinstance(node, ast.Constant):
            # bool is an int subclass; reject strings, bytes, None
            if isinstance(node.value, (int, float)):
                return Number(node.value)
            raise FormulaSyntaxError(f"Unsupported literal: {node.value!r}")

        if isinstance(node, ast.Name):
            if node.id in CONSTANTS:
                return Number(CONSTANTS[node.id])
            self._variables.add(node.id)
            return FieldRef(node.id)

        if isinstance(node, ast.Attribute):
            # Only Math.PI / Math.E style constants
            name = self._namespaced_name(node)
            if name in CONSTANTS:
                return Number(CONSTANTS[name])
            raise FormulaSyntaxError(f"Unsupported attribute access: {ast.unparse(node)}")

        if isinstance(node, ast.UnaryOp):
            op = UNARY_OPERATORS.get(type(node.op))
            if op is None:
                raise FormulaSyntaxError(f"Unsupported unary operator: {ast.unparse(node)}")
            return UnaryOp(op=op, operand=self._translate(node.operand, depth + 1))

        if isinstance(node, ast.BinOp):
            op = BINARY_OPERATORS.get(type(node.op))
            if op is None:
                raise FormulaSyntaxError(f"Unsupported operator: {ast.unparse(node)}")
            return BinaryOp(
                op=op,
                left=self._translate(node.left, depth + 1),
                right=self._translate(node.right, depth + 1),
            )

        if isinstance(node, ast.BoolOp):
            op = "and" if isinstance(node.op, ast.And) else "or"
            return BoolOp(
                op=op,
                values=tuple(self._translate(v, depth + 1) for v in node.values),
            )

        if isinstance(node, ast.Compare):
            return self._translate_compare(node, depth)

        if isinstance(node, ast.IfExp):
            return Conditional(
                test=self._translate(node.test, depth + 1),
                body=self._translate(node.body, depth + 1),
                orelse=self._translate(node.orelse, depth + 1),
            )

        if isinstance(node, ast.Call):
            return self._translate_call(node, depth)

        raise FormulaSyntaxError(
            f"Unsupported expression: {type(node).__name__} in '{ast.unparse(node)}'"
        )

    def _translate_compare(self, node: ast.Compare, depth: int) -> Node:
        """Translate ``a < b <= c`` into ``a < b and b <= c``."""
        operands = [node.left, *node.comparators]
        translated = [self._translate(o, depth + 1) for o in operands]

        comparisons = []
        for i, op_node in enumerate(node.ops):
            op = COMPARE_OPERATORS.get(type(op_node))
            if op is None:
                raise FormulaSyntaxError(f"Unsupported comparison: {ast.unparse(node)}")
            comparisons.append(Compare(op=op, left=translated[i], right=translated[i + 1]))

        if len(comparisons) == 1:
            return comparisons[0]
        return BoolOp(op="and", values=tuple(comparisons))

    def _translate_call(self, node: ast.Call, depth: int) -> Node:
        """Translate a call to an allow-listed helper."""
        if node.keywords:
            raise FormulaSyntaxError(f"Keyword arguments are not supported: {ast.unparse(node)}")

        if isinstance(node.func, ast.Name):
            name = node.func.id
        elif isinstance(node.func, ast.Attribute):
            name = self._namespaced_name(node.func).lower()
        else:
            raise FormulaSyntaxError(f"Unsupported call target: {ast.unparse(node)}")

        arity = FUNCTION_ARITY.get(name)
        if arity is None:
            raise FormulaSyntaxError(f"Unknown function '{name}'")

        low, high = arity
        count = len(node.args)
        if count < low or (high is not None and count > high):
            raise FormulaSyntaxError(
                f"Wrong number of arguments for '{name}': got {count}"
            )

        if name == "random":
            self._uses_random = True

        return Call(
            function=name,
            args=tuple(self._translate(a, depth + 1) for a in node.args),
        )

    def _namespaced_name(self, node: ast.Attribute) -> str:
        """Resolve ``Math.<name>`` to ``<name>``; reject everything else."""
        if isinstance(node.value, ast.Name) and node.value.id in NAMESPACE_ALIASES:
            attr = node.attr
            # Math.PI, Math.E
            return attr.lower() if attr.isupper() else attr
        raise FormulaSyntaxError(f"Unsupported attribute access: {ast.unparse(node)}")


def compile_formula(
    source: str,
    max_nodes: int = DEFAULT_MAX_NODES,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> CompiledFormula:
    """Convenience function to compile a single formula."""
    return FormulaCompiler(max_nodes=max_nodes, max_depth=max_depth).compile(source)
