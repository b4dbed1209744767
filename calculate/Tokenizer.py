# Tokenizer.py
"""Lexer: turns expression text into a lazy stream of tokens.

The stream always finishes with an END token. Signs are never part of a
numeric literal; the parser decides whether '-' is unary or binary.
"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal

from . import error as E


class TokenKind(enum.Enum):
    NUMBER = "NUMBER"
    IDENTIFIER = "IDENTIFIER"
    OPERATOR = "OPERATOR"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"
    END = "END"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    pos: int
    end: int
    value: Decimal | None = field(default=None, compare=False)


# Longest symbols first so '**' wins over '*'.
OPERATOR_SYMBOLS = ("**", "<<", ">>", "+", "-", "*", "/", "%", "^", "&", "|", "~", "√", "²", "³")

_SINGLE_TOKENS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
}


def _is_ident_start(ch):
    return ch.isalpha()


def _is_digit(ch):
    # str.isdigit() also accepts '²' and '³', which are operators here.
    return "0" <= ch <= "9"


def _is_ident_continue(ch):
    return ch.isalpha() or _is_digit(ch)


def _scan_number(text, start):
    """Return the end index of the numeric literal starting at `start`."""
    i = start
    seen_point = False
    while i < len(text) and (_is_digit(text[i]) or text[i] == "."):
        if text[i] == ".":
            if seen_point:
                # Swallow the rest of the literal so the error shows all of it.
                end = i
                while end < len(text) and (_is_digit(text[end]) or text[end] == "."):
                    end += 1
                raise E.MalformedNumber(text[start:end], start)
            seen_point = True
        i += 1
    if text[start:i] == ".":
        raise E.MalformedNumber(".", start)
    return i


def tokenize(text):
    """Yield the tokens of `text`, finishing with a single END token.

    Raises InvalidCharacter or MalformedNumber when the offending position is
    reached, so a consumer sees every token before the error first.
    """
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]

        # --- Whitespace ---
        if ch.isspace():
            i += 1
            continue

        # --- Numbers ---
        if _is_digit(ch) or ch == ".":
            end = _scan_number(text, i)
            literal = text[i:end]
            yield Token(TokenKind.NUMBER, literal, i, end, Decimal(literal))
            i = end
            continue

        # --- Identifiers (variables and function names) ---
        if _is_ident_start(ch):
            end = i + 1
            while end < length and _is_ident_continue(text[end]):
                end += 1
            yield Token(TokenKind.IDENTIFIER, text[i:end], i, end)
            i = end
            continue

        # --- Parentheses and comma ---
        kind = _SINGLE_TOKENS.get(ch)
        if kind is not None:
            yield Token(kind, ch, i, i + 1)
            i += 1
            continue

        # --- Operators ---
        for symbol in OPERATOR_SYMBOLS:
            if text.startswith(symbol, i):
                yield Token(TokenKind.OPERATOR, symbol, i, i + len(symbol))
                i += len(symbol)
                break
        else:
            raise E.InvalidCharacter(ch, i)

    yield Token(TokenKind.END, "", length, length)
