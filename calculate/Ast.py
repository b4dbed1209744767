# Ast.py
"""AST node types.

Nodes are frozen, so a parsed tree can be evaluated any number of times and
shared between threads without copying.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class Literal:
    value: Decimal

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Variable:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class UnaryOp:
    symbol: str
    operand: "Node"
    postfix: bool = False

    def __str__(self):
        if self.postfix:
            return f"({self.operand}{self.symbol})"
        return f"({self.symbol}{self.operand})"


@dataclass(frozen=True)
class BinaryOp:
    symbol: str
    left: "Node"
    right: "Node"

    def __str__(self):
        return f"({self.left} {self.symbol} {self.right})"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Node", ...]

    def __str__(self):
        return f"{self.name}({', '.join(str(arg) for arg in self.args)})"


Node = Union[Literal, Variable, UnaryOp, BinaryOp, Call]
