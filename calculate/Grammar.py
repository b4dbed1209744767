# Grammar.py
"""Static operator and function tables shared by the parser and the evaluator.

Precedence, associativity, arity and fixity live here as data. Nothing in the
parser branches on a particular operator symbol.
"""

import enum
from dataclasses import dataclass
from types import MappingProxyType


class Associativity(enum.Enum):
    LEFT = "left"
    RIGHT = "right"


class Arity(enum.Enum):
    UNARY = "unary"
    BINARY = "binary"


class Fixity(enum.Enum):
    PREFIX = "prefix"
    INFIX = "infix"
    POSTFIX = "postfix"


@dataclass(frozen=True)
class OperatorEntry:
    symbol: str
    precedence: int
    associativity: Associativity
    arity: Arity
    fixity: Fixity = Fixity.INFIX


def _binary(symbol, precedence, associativity=Associativity.LEFT):
    return OperatorEntry(symbol, precedence, associativity, Arity.BINARY)


def _prefix(symbol, precedence):
    return OperatorEntry(symbol, precedence, Associativity.RIGHT, Arity.UNARY, Fixity.PREFIX)


def _postfix(symbol, precedence):
    return OperatorEntry(symbol, precedence, Associativity.LEFT, Arity.UNARY, Fixity.POSTFIX)


# Lowest binding first.
OPERATORS = (
    _binary("|", 1),
    _binary("&", 2),
    _binary("<<", 3),
    _binary(">>", 3),
    _binary("+", 4),
    _binary("-", 4),
    _binary("*", 5),
    _binary("/", 5),
    _binary("%", 5),
    _binary("^", 6, Associativity.RIGHT),
    _binary("**", 6, Associativity.RIGHT),
    # Unary operators bind tighter than every binary operator.
    _prefix("-", 7),
    _prefix("+", 7),
    _prefix("~", 7),
    _prefix("√", 7),
    _postfix("²", 8),
    _postfix("³", 8),
)

# name -> number of arguments
FUNCTIONS = MappingProxyType({
    "abs": 1,
    "sqrt": 1,
    "cbrt": 1,
    "exp": 1,
    "ln": 1,
    "log10": 1,
    "log": 2,
    "sin": 1,
    "cos": 1,
    "tan": 1,
    "asin": 1,
    "acos": 1,
    "atan": 1,
    "floor": 1,
    "ceil": 1,
    "trunc": 1,
    "round": 1,
    "roundto": 2,
    "min": 2,
    "max": 2,
    "xor": 2,
})


class Grammar:
    """Immutable lookup over operator entries and function arities."""

    def __init__(self, operators=OPERATORS, functions=FUNCTIONS):
        binary = {}
        prefix = {}
        postfix = {}
        for entry in operators:
            if entry.arity is Arity.BINARY:
                table = binary
            elif entry.fixity is Fixity.POSTFIX:
                table = postfix
            else:
                table = prefix
            if entry.symbol in table:
                raise ValueError(f"Duplicate {entry.fixity.value} entry for {entry.symbol!r}")
            table[entry.symbol] = entry

        self.operators = tuple(operators)
        self.functions = MappingProxyType(dict(functions))
        self._binary = MappingProxyType(binary)
        self._prefix = MappingProxyType(prefix)
        self._postfix = MappingProxyType(postfix)

    def binary(self, symbol):
        return self._binary.get(symbol)

    def prefix(self, symbol):
        return self._prefix.get(symbol)

    def postfix(self, symbol):
        return self._postfix.get(symbol)

    def unary(self, symbol):
        return self._prefix.get(symbol) or self._postfix.get(symbol)

    def symbols(self):
        """Every operator symbol with at least one entry."""
        return frozenset(entry.symbol for entry in self.operators)

    def arity(self, name):
        """Declared argument count of a function, or None if it is not known."""
        return self.functions.get(name)

    def without(self, symbol, arity=None):
        """Copy of this grammar minus the entries for `symbol` (optionally of one arity)."""
        kept = tuple(
            entry for entry in self.operators
            if not (entry.symbol == symbol and (arity is None or entry.arity is arity))
        )
        return Grammar(kept, self.functions)

    def __repr__(self):
        return f"Grammar({len(self.operators)} operators, {len(self.functions)} functions)"


GRAMMAR = Grammar()
