"""Expression parser and evaluator for canonical Rune text.

The language is deliberately small:

    expr := literal | symbol | "(" command expr* ")"
    literal := number | "string" | #t | #f

Symbols name local variables. A call head names a command from the closed
command table, or the ``define`` form used by the ``set`` macro. Variables
are bound to expressions, not values, and are re-evaluated on every lookup.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# =============================
# Errors
# =============================
class RuneError(Exception):
    """Base class for recoverable Rune errors."""

class ParseError(RuneError):
    """Canonical text could not be parsed."""

class EvalError(RuneError):
    """A parsed expression failed while evaluating."""

class ScriptIOError(RuneError):
    """A recorded script could not be written."""

# =============================
# Expression tree
# =============================
@dataclass(frozen=True)
class Literal:
    value: Any

@dataclass(frozen=True)
class Symbol:
    name: str

@dataclass(frozen=True)
class Call:
    head: str
    args: tuple = ()

Expr = Union[Literal, Symbol, Call]

# =============================
# Tokenizer & parser
# =============================
TOKEN_SPEC = [
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("STRING", r'"(?:[^"\\]|\\.)*"'),
    ("UNTERMINATED", r'"'),
    ("SKIP", r"\s+"),
    ("ATOM", r'[^\s()"]+'),
]
TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in TOKEN_SPEC))
NUMBER_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
ESCAPE_RE = re.compile(r"\\(.)")
ATOM_RE = re.compile(r'[^\s()"]+')

def tokenize(text: str) -> List[tuple]:
    tokens = []
    for mo in TOKEN_RE.finditer(text):
        kind = mo.lastgroup
        if kind == "SKIP":
            continue
        if kind == "UNTERMINATED":
            raise ParseError(f"unterminated string starting at position {mo.start()}")
        tokens.append((kind, mo.group(), mo.start()))
    return tokens

def parse_atom(token: str) -> Expr:
    if token in ("#t", "#true"):
        return Literal(True)
    if token in ("#f", "#false"):
        return Literal(False)
    if NUMBER_RE.fullmatch(token):
        if any(c in token for c in ".eE"):
            return Literal(float(token))
        return Literal(int(token))
    return Symbol(token)

def is_symbol_name(text: str) -> bool:
    return ATOM_RE.fullmatch(text) is not None and isinstance(parse_atom(text), Symbol)

def parse(text: str) -> Expr:
    """Parse exactly one expression from text."""
    tokens = tokenize(text)
    if not tokens:
        raise ParseError("empty expression")
    expr, pos = _parse_expr(tokens, 0)
    if pos != len(tokens):
        raise ParseError(f"unexpected text after expression at position {tokens[pos][2]}")
    return expr

def _parse_expr(tokens: List[tuple], pos: int):
    kind, value, offset = tokens[pos]
    if kind == "RPAREN":
        raise ParseError(f"unexpected ')' at position {offset}")
    if kind == "STRING":
        return Literal(ESCAPE_RE.sub(r"\1", value[1:-1])), pos + 1
    if kind == "ATOM":
        return parse_atom(value), pos + 1

    # LPAREN: a call
    pos += 1
    if pos >= len(tokens):
        raise ParseError("missing closing parenthesis")
    head_kind, head, head_offset = tokens[pos]
    if head_kind == "RPAREN":
        raise ParseError(f"empty call at position {offset}")
    if head_kind != "ATOM" or not isinstance(parse_atom(head), Symbol):
        raise ParseError(f"expected a command name at position {head_offset}")
    pos += 1
    args = []
    while True:
        if pos >= len(tokens):
            raise ParseError("missing closing parenthesis")
        if tokens[pos][0] == "RPAREN":
            return Call(head, tuple(args)), pos + 1
        arg, pos = _parse_expr(tokens, pos)
        args.append(arg)

# =============================
# Commands & environment
# =============================
@dataclass
class Command:
    """One entry of the closed command table."""
    name: str
    handler: Callable[..., Any]
    min_args: int = 0
    max_args: Optional[int] = 0
    usage: str = ""
    help: str = ""

    def check_arity(self, args: List[Any]) -> None:
        given = len(args)
        if given < self.min_args or (self.max_args is not None and given > self.max_args):
            if self.max_args is None:
                expected = f"at least {self.min_args}"
            elif self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise EvalError(f"{self.name}: expects {expected} argument(s), given {given}; usage: {self.usage}")

class Environment:
    """Variable bindings plus the command table, shared by every evaluation."""

    def __init__(self, commands: Optional[Dict[str, Command]] = None, context: Any = None,
                 names: Any = None):
        self.bindings: Dict[str, Expr] = {}
        self.commands: Dict[str, Command] = dict(commands or {})
        self.context = context
        # anything with add(name); every defined name is reported to it
        self.names = names
        self._resolving: List[str] = []

    def define(self, name: str, expr: Expr) -> None:
        self.bindings[name] = expr
        if self.names is not None:
            self.names.add(name)

    def is_bound(self, name: str) -> bool:
        return name in self.bindings

    def resolve(self, name: str) -> Any:
        if name not in self.bindings:
            raise EvalError(f"{name}: undefined variable")
        if name in self._resolving:
            raise EvalError(f"{name}: circular variable reference")
        self._resolving.append(name)
        try:
            return evaluate(self.bindings[name], self)
        finally:
            self._resolving.pop()

# =============================
# Evaluator
# =============================
def describe_os_error(e: OSError) -> str:
    reason = e.strerror or str(e)
    if e.filename:
        return f"{reason}: {e.filename}"
    return reason

def _define(call: Call, env: Environment) -> None:
    if len(call.args) != 2 or not isinstance(call.args[0], Symbol):
        raise EvalError("define: expects a variable name and an expression")
    env.define(call.args[0].name, call.args[1])

def evaluate(expr: Expr, env: Environment) -> Any:
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, Symbol):
        return env.resolve(expr.name)
    if expr.head == "define":
        return _define(expr, env)
    command = env.commands.get(expr.head)
    if command is None:
        raise EvalError(f"{expr.head}: unknown command")
    args = [evaluate(a, env) for a in expr.args]
    command.check_arity(args)
    try:
        return command.handler(env.context, *args)
    except OSError as e:
        logger.debug("handler %s failed", expr.head, exc_info=True)
        raise EvalError(f"{expr.head}: {describe_os_error(e)}") from e
    except (TypeError, ValueError) as e:
        # wrong argument types, e.g. (cd 5)
        logger.debug("handler %s rejected its arguments", expr.head, exc_info=True)
        raise EvalError(f"{expr.head}: {e}") from e

# =============================
# Typed outcome
# =============================
class OutcomeKind(Enum):
    OK = "ok"
    PARSE_ERROR = "parse-error"
    EVAL_ERROR = "eval-error"
    IO_ERROR = "io-error"

@dataclass
class Outcome:
    kind: OutcomeKind
    value: Any = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK

def evaluate_text(text: str, env: Environment) -> Outcome:
    """Parse and evaluate canonical text; recoverable failures become outcomes.

    Anything that is not a RuneError (or an OSError, TypeError or ValueError
    from a handler, which evaluate() already turns into an EvalError)
    propagates to the caller.
    """
    logger.debug("evaluating %r", text)
    try:
        expr = parse(text)
    except ParseError as e:
        return Outcome(OutcomeKind.PARSE_ERROR, message=str(e))
    try:
        value = evaluate(expr, env)
    except ScriptIOError as e:
        return Outcome(OutcomeKind.IO_ERROR, message=str(e))
    except EvalError as e:
        return Outcome(OutcomeKind.EVAL_ERROR, message=str(e))
    return Outcome(OutcomeKind.OK, value=value)

# =============================
# Display
# =============================
def format_value(value: Any) -> str:
    if value is None:
        return ""
    if value is True:
        return "#t"
    if value is False:
        return "#f"
    if isinstance(value, (list, tuple)):
        return "(" + " ".join(format_value(v) for v in value) + ")"
    return str(value)
