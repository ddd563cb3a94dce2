"""Local variables and the set/get macro.

``set x = 5`` expands to ``(define x 5)``; the bound expression is kept
unevaluated so ``set y = x`` makes ``y`` follow ``x``.
"""

from __future__ import annotations

import logging
from typing import Iterator, List

from rune_eval import Environment, ParseError, RuneError, Symbol, evaluate, format_value, is_symbol_name, parse
from rune_syntax import quote_string, split_line

logger = logging.getLogger(__name__)

NOOP = "(void)"
SLOTS = 4

class VariableStore:
    """Ordered names of local variables defined with ``set`` or ``define``.

    A name that is set again keeps its original position.
    """

    def __init__(self):
        self._names: List[str] = []

    def add(self, name: str) -> None:
        if name not in self._names:
            self._names.append(name)

    def names(self) -> List[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)

def list_variables(store: VariableStore, env: Environment) -> None:
    if not store:
        print("no variables defined")
        return
    for name in store:
        try:
            value = format_value(evaluate(Symbol(name), env))
        except RuneError as e:
            value = f"<{e}>"
        print(f"{name} = {value}")

def mismatch_expression(command: str, params: List[str]) -> str:
    slots = (params + [""] * SLOTS)[:SLOTS]
    rest = " ".join(params[SLOTS:])
    return "(macro-mismatch " + " ".join(quote_string(p) for p in [command, *slots, rest]) + ")"

def describe_mismatch(command: str, p1: str, p2: str, p3: str, p4: str, rest: str) -> str:
    slots = " ".join(f"[{p}]" for p in (p1, p2, p3, p4))
    return (f"No macro form matches '{command}' with parameters {slots} and rest [{rest}]; "
            f"expected 'set <name> = <value>', 'set' or 'get'")

def expand_macro(line: str, store: VariableStore, env: Environment) -> str:
    """Expand a set/get line into canonical text. Never raises."""
    command, params = split_line(line)
    if command in ("set", "get") and not params:
        list_variables(store, env)
        return NOOP
    if (command == "set" and len(params) == 3 and params[1] == "="
            and is_symbol_name(params[0]) and params[2]):
        name, value = params[0], params[2]
        try:
            parse(value)
        except ParseError:
            # leave the store alone; evaluating the define reports the parse error
            logger.debug("unparsable value for %s: %r", name, value)
        else:
            store.add(name)
        return f"(define {name} {value})"
    return mismatch_expression(command, params)
