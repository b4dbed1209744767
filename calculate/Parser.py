# Parser.py
"""Precedence-climbing parser.

Grammar (binding strength comes from the Grammar table, not from this file):
    expression → unary (BINARY_OP unary)*
    unary      → PREFIX_OP unary | postfix
    postfix    → primary POSTFIX_OP*
    primary    → NUMBER | IDENTIFIER | IDENTIFIER "(" arguments? ")" | "(" expression ")"
    arguments  → expression ("," expression)*
"""

import logging

from . import error as E
from .Ast import BinaryOp, Call, Literal, UnaryOp, Variable
from .Grammar import GRAMMAR, Associativity
from .Tokenizer import TokenKind, tokenize

logger = logging.getLogger(__name__)


class _Parser:
    """Walks a token stream one token at a time (the lexer stays lazy)."""

    def __init__(self, tokens, grammar):
        self.tokens = iter(tokens)
        self.grammar = grammar
        self.previous = None
        self.current = next(self.tokens)
        self.depth = 0  # open parentheses

    def advance(self):
        token = self.current
        if token.kind is not TokenKind.END:
            self.previous = token
            self.current = next(self.tokens)
        return token

    def at(self, kind):
        return self.current.kind is kind

    def is_operator(self):
        return self.current.kind is TokenKind.OPERATOR

    # -- Grammar rules --

    def parse(self):
        if self.at(TokenKind.END):
            # Empty expression
            raise E.UnexpectedToken(self.current, self.current.pos)

        tree = self.parse_expression(0)

        if self.at(TokenKind.RPAREN):
            raise E.UnbalancedParens(self.current.pos)
        if not self.at(TokenKind.END):
            raise E.UnexpectedToken(self.current, self.current.pos)
        return tree

    def parse_expression(self, min_precedence):
        """Binary operators whose precedence is at least `min_precedence`."""
        left = self.parse_unary()

        while True:
            token = self.current
            if token.kind in (TokenKind.END, TokenKind.RPAREN, TokenKind.COMMA):
                break
            if token.kind is not TokenKind.OPERATOR:
                # An operand straight after an operand, e.g. "2 3" or "2 (3)".
                raise E.UnexpectedToken(token, token.pos)

            entry = self.grammar.binary(token.text)
            if entry is None:
                raise E.UnexpectedToken(token, token.pos)
            if entry.precedence < min_precedence:
                break

            self.advance()
            if entry.associativity is Associativity.RIGHT:
                next_min = entry.precedence
            else:
                next_min = entry.precedence + 1
            right = self.parse_expression(next_min)
            left = BinaryOp(entry.symbol, left, right)

        return left

    def parse_unary(self):
        """Prefix operators, right-nesting: '--x' is '-(-x)'."""
        if self.is_operator():
            token = self.current
            entry = self.grammar.prefix(token.text)
            if entry is None:
                # A binary-only symbol where an operand is expected.
                raise E.UnexpectedToken(token, token.pos)
            self.advance()
            return UnaryOp(entry.symbol, self.parse_unary())
        return self.parse_postfix(self.parse_primary())

    def parse_postfix(self, operand):
        while self.is_operator():
            entry = self.grammar.postfix(self.current.text)
            if entry is None:
                break
            self.advance()
            operand = UnaryOp(entry.symbol, operand, postfix=True)
        return operand

    def parse_primary(self):
        token = self.current

        if token.kind is TokenKind.NUMBER:
            self.advance()
            return Literal(token.value)

        if token.kind is TokenKind.IDENTIFIER:
            self.advance()
            if self.at(TokenKind.LPAREN):
                return self.parse_call(token)
            if self.grammar.arity(token.text) is not None:
                # Function name without an argument list
                raise E.UnexpectedToken(self.current, self.current.pos)
            return Variable(token.text)

        if token.kind is TokenKind.LPAREN:
            self.advance()
            self.depth += 1
            inner = self.parse_expression(0)
            self.expect_closing()
            self.depth -= 1
            return inner

        if token.kind is TokenKind.END:
            previous = self.previous
            if previous is not None and previous.kind is TokenKind.OPERATOR:
                # Trailing operator with no right operand
                raise E.UnexpectedToken(previous, previous.pos)
            raise E.UnexpectedEnd(token.pos)

        if token.kind is TokenKind.RPAREN and self.depth == 0:
            raise E.UnbalancedParens(token.pos)

        raise E.UnexpectedToken(token, token.pos)

    def parse_call(self, name_token):
        name = name_token.text
        self.advance()  # '('
        self.depth += 1

        args = []
        if not self.at(TokenKind.RPAREN):
            args.append(self.parse_expression(0))
            while self.at(TokenKind.COMMA):
                self.advance()
                args.append(self.parse_expression(0))
        self.expect_closing()
        self.depth -= 1

        expected = self.grammar.arity(name)
        if expected is not None and expected != len(args):
            raise E.ArityMismatch(name, expected, len(args), name_token.pos)
        # Unknown names are left for the evaluator to reject.
        return Call(name, tuple(args))

    def expect_closing(self):
        if self.at(TokenKind.RPAREN):
            self.advance()
            return
        if self.at(TokenKind.END):
            raise E.UnbalancedParens(self.current.pos)
        raise E.UnexpectedToken(self.current, self.current.pos)


def parse(tokens, grammar=GRAMMAR):
    """Build an AST from a token iterable, or from expression text.

    Raises a ParseError subclass (or the LexError met while pulling tokens).
    """
    if isinstance(tokens, str):
        tokens = tokenize(tokens)
    parser = _Parser(tokens, grammar)
    try:
        tree = parser.parse()
    except RecursionError:
        raise E.NestingTooDeep(parser.current.pos)
    logger.debug("Parsed AST: %s", tree)
    return tree
