# error.py
"""Error taxonomy for the calculate engine.

Every failure is a MathError carrying a four digit code, so shells can look up
a human readable text in ERROR_MESSAGES and keep the session running.

Codes are structured in:
1. Digit: Main Error (see Error_Dictionary)
2. Digit: Specification
3. and 4. Digit: Error Number
"""


class MathError(Exception):
    def __init__(self, message, code="9999", equation=None, position=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.equation = equation
        self.position = position

    def __str__(self):
        if self.position is not None:
            return f"{self.message} (at position {self.position})"
        return self.message


# Any error the engine can raise.
EngineError = MathError


# -----------------------------
# Lexing
# -----------------------------

class LexError(MathError):
    pass


class InvalidCharacter(LexError):
    def __init__(self, character, position):
        super().__init__(f"Invalid character {character!r}", code="3001", position=position)
        self.character = character


class MalformedNumber(LexError):
    def __init__(self, text, position):
        super().__init__(f"Malformed number {text!r}", code="3008", position=position)
        self.text = text


# -----------------------------
# Parsing
# -----------------------------

class ParseError(MathError):
    pass


class UnexpectedToken(ParseError):
    def __init__(self, token, position):
        super().__init__(f"Unexpected token {token.text or token.kind.value!r}", code="3011", position=position)
        self.token = token


class UnexpectedEnd(ParseError):
    def __init__(self, position=None):
        super().__init__("Unexpected end of input", code="3027", position=position)


class UnbalancedParens(ParseError):
    def __init__(self, position=None):
        super().__init__("Unbalanced parentheses", code="3009", position=position)


class ArityMismatch(ParseError):
    def __init__(self, name, expected, actual, position=None):
        super().__init__(
            f"Function '{name}' takes {expected} argument{'s' if expected != 1 else ''}, got {actual}",
            code="3031",
            position=position,
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class NestingTooDeep(ParseError):
    def __init__(self, position=None):
        super().__init__("Expression is nested too deeply", code="3035", position=position)


# -----------------------------
# Evaluation
# -----------------------------

class EvalError(MathError):
    pass


class UndefinedVariable(EvalError):
    def __init__(self, name):
        super().__init__(f"Undefined variable '{name}'", code="3032")
        self.name = name


class DivisionByZero(EvalError):
    def __init__(self, message="Division by zero"):
        super().__init__(message, code="3003")


class InvalidOperation(EvalError):
    def __init__(self, message):
        super().__init__(message, code="3004")


class DomainError(EvalError):
    def __init__(self, message):
        super().__init__(message, code="2002")


class UnknownFunction(EvalError):
    def __init__(self, name):
        super().__init__(f"Unknown function '{name}'", code="2004")
        self.name = name


class Overflow(EvalError):
    def __init__(self, message="Number too large (arithmetic overflow)"):
        super().__init__(message, code="3026")


class EvaluationTooDeep(EvalError):
    def __init__(self):
        super().__init__("Expression tree is nested too deeply to evaluate", code="3036")


# -----------------------------
# Environment / configuration
# -----------------------------

class EnvError(MathError):
    pass


class ReservedName(EnvError):
    def __init__(self, name):
        super().__init__(f"'{name}' is a builtin constant and cannot be assigned", code="3034")
        self.name = name


class ConfigError(MathError):
    def __init__(self, message):
        super().__init__(message, code="5001")


Error_Dictionary = {

    "2": "Scientific Calculation Error",
    "3": "Calculator Error",
    "4": "UI Error",
    "5": "Configuration Error",
    "9": "Runtime Error"

}


ERROR_MESSAGES = {
    "2002": "Argument outside the function's domain.",
    "2004": "Unknown function: ",  # + name

    "3001": "Invalid character.",
    "3003": "Division by Zero",
    "3004": "Invalid operation.",
    "3008": "More than one '.' in one number.",
    "3009": "Missing '(' or ')'.",
    "3011": "Unexpected Token: ",  # + token
    "3026": "Number too big.",
    "3027": "Unexpected end of input.",
    "3031": "Wrong number of function arguments.",
    "3032": "Undefined variable: ",  # + name
    "3034": "Builtin constants cannot be assigned.",
    "3035": "Expression is nested too deeply.",
    "3036": "Expression tree is nested too deeply to evaluate.",

    "4002": "Calculation already Running!",
    "4501": "Not all Settings could be saved: ",  # + setting

    "5001": "Invalid configuration: ",  # + setting

    "9999": "Unexpected Error: "  # + error
}
