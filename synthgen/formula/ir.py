"""
Closed expression AST for formula rules.

Formulas are compiled once at template registration into these nodes and
evaluated by ``synthgen.formula.evaluator``. Only the node types below
exist: there is no attribute access, subscripting, or name lookup outside
the current record, so an expression cannot reach the host environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

BinaryOperator = Literal["+", "-", "*", "/", "//", "%", "**"]
CompareOperator = Literal["==", "!=", "<", "<=", ">", ">="]


@dataclass(frozen=True)
class Number:
    """A numeric literal (or a folded constant such as ``pi``)."""

    value: float | int


@dataclass(frozen=True)
class FieldRef:
    """A reference to a field already generated in the current record."""

    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: Literal["+", "-", "not"]
    operand: Node


@dataclass(frozen=True)
class BinaryOp:
    op: BinaryOperator
    left: Node
    right: Node


@dataclass(frozen=True)
class Compare:
    op: CompareOperator
    left: Node
    right: Node


@dataclass(frozen=True)
class BoolOp:
    """Short-circuit ``and`` / ``or`` over two or more operands."""

    op: Literal["and", "or"]
    values: tuple[Node, ...]


@dataclass(frozen=True)
class Conditional:
    """``body if test else orelse``."""

    test: Node
    body: Node
    orelse: Node


@dataclass(frozen=True)
class Call:
    """A call to an allow-listed helper function."""

    function: str
    args: tuple[Node, ...] = ()


Node = Union[Number, FieldRef, UnaryOp, BinaryOp, Compare, BoolOp, Conditional, Call]


@dataclass(frozen=True)
class CompiledFormula:
    """A parsed formula ready for evaluation."""

    source: str
    root: Node
    variables: frozenset[str] = field(default_factory=frozenset)
    """Record fields the expression reads."""

    node_count: int = 0
    uses_random: bool = False
